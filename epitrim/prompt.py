"""Blocking console helpers for interactive runs."""

import sys

from epitrim.errors import InputError


def get_standard_user_input(prefix_text: str) -> str:
    """Print *prefix_text* and return the next line typed on stdin."""
    print(prefix_text, end="", flush=True)
    line = sys.stdin.readline()
    if not line:
        raise InputError("There was an error getting standard user input")
    return line.rstrip("\r\n")


def ask_milliseconds(prefix_text: str) -> int:
    """Prompt until the user enters a non-negative whole number."""
    while True:
        answer = get_standard_user_input(prefix_text).strip()
        if answer.isdigit():
            return int(answer)
        print(f"'{answer}' is not a number of milliseconds, try again.")


def pause() -> None:
    """Block until the user presses Enter."""
    print("Press 'Enter' to continue...", end="", flush=True)
    sys.stdin.readline()
