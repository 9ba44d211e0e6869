"""Text normalization for SMS messages.

Turns raw message text into the token sequence used both when training the
classifier and when classifying new messages. The same procedure must run
at both stages; any divergence silently corrupts the learned frequencies.

Steps, in order:
- lowercase
- collapse whitespace runs to a single space and trim
- strip ASCII punctuation
- strip legacy encoding artifacts (cp1252 quotes, dashes, ellipses)
- strip digits
- split on single spaces, dropping empty fragments

No external NLP libraries required.
"""

from __future__ import annotations

import re
import string

# ---------------------------------------------------------------------------
# Character classes
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")

_DIGIT_RE = re.compile(r"\d+")

# cp1252 punctuation that shows up in SMS dumps either as C1 control
# characters (bytes decoded as latin-1) or as the proper Unicode code points.
ENCODING_ARTIFACTS: frozenset[str] = frozenset(
    {
        "\x85",  # ellipsis
        "\x91",  # left single quote
        "\x92",  # right single quote
        "\x93",  # left double quote
        "\x94",  # right double quote
        "\x95",  # bullet
        "\x96",  # en dash
        "\x97",  # em dash
        "‘",
        "’",
        "“",
        "”",
        "•",
        "–",
        "—",
        "…",
        "\n",
        "\t",
    }
)

_PUNCTUATION_TABLE = str.maketrans("", "", string.punctuation)

_ARTIFACT_TABLE = str.maketrans("", "", "".join(ENCODING_ARTIFACTS))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(text: str) -> list[str]:
    """Reduce message text to a list of lowercase word tokens.

    Order and duplicates are preserved. Any string is valid input; empty or
    punctuation-only text yields an empty list.

    Args:
        text: Raw message text.

    Returns:
        List of tokens, none of them empty.
    """
    text = text.lower()
    text = _WHITESPACE_RE.sub(" ", text).strip()
    text = text.translate(_PUNCTUATION_TABLE)
    text = text.translate(_ARTIFACT_TABLE)
    text = _DIGIT_RE.sub("", text)
    # Removing characters above can leave double spaces behind
    return [token for token in text.split(" ") if token]


def normalize_to_string(text: str) -> str:
    """Normalize text and join the tokens with single spaces."""
    return " ".join(normalize(text))
