"""Unbiased in-place shuffle"""
import random


def fisher_yates(items, rng=None):
    """
    Shuffle a list in place with the Fisher-Yates algorithm.

    Args:
        items: list to permute
        rng: random.Random-like source (defaults to module random)

    Returns:
        list: the same list object, permuted
    """
    rng = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items
