def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance: the fewest single character insertions, deletions
    or substitutions that turn `a` into `b`.

    Comparison is case-sensitive, lower-case both sides first to ignore case.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a  # keep the row as short as possible
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            curr.append(
                min(
                    prev[j] + 1,  # delete
                    curr[j - 1] + 1,  # insert
                    prev[j - 1] + (ca != cb),  # substitute
                )
            )
        prev = curr
    return prev[-1]
