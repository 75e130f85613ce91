"""Argument parsing helpers shared by batch jobs."""
import argparse


def non_negative_int(value: str) -> int:
    """argparse type for counts and limits: an integer >= 0."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number
