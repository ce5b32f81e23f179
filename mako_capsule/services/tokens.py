"""Token estimation for budget enforcement and savings reporting.

The estimate is the larger of two cheap heuristics:

* words x 1.3: close to real tokenizers for whitespace-separated prose;
* characters / 4: a floor for text the word heuristic undercounts (CJK,
  long URLs, code).

Both are computed with integer arithmetic so the result is stable across
platforms and repeated calls.
"""


def estimate(text: str) -> int:
    """Return the estimated token count of *text* (0 for blank input)."""
    text = text.strip()
    if not text:
        return 0

    words = len(text.split())
    word_estimate = (words * 13 + 9) // 10
    char_estimate = (len(text) + 3) // 4

    return max(word_estimate, char_estimate)


def savings_percent(html_tokens: int, capsule_tokens: int) -> float:
    """Percentage of tokens saved by serving the capsule instead of the HTML."""
    if html_tokens <= 0:
        return 0.0

    savings = (html_tokens - capsule_tokens) / html_tokens * 100
    return round(max(0.0, savings), 2)
