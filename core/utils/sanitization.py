"""
Sanitization of user-generated text.

Vote comments are shown back to group members in emails and the front-end,
so markup is stripped before they are stored.
"""

import bleach

MAX_COMMENT_LENGTH = 1000


def strip_all_html(content: str) -> str:
    """
    Strip all HTML tags from content, leaving only plain text.

    Examples:
        >>> strip_all_html('<p>Hello <strong>World</strong></p>')
        'Hello World'
    """
    if not content:
        return content

    return bleach.clean(content, tags=[], strip=True)


def clean_comment(comment: str) -> str:
    """
    Plain text version of a vote comment.

    Tags are removed, whitespace runs are collapsed and the result is cut to
    ``MAX_COMMENT_LENGTH`` characters.

    Args:
        comment: Raw comment as submitted (may be None)

    Returns:
        Sanitized comment, empty string when there is nothing left
    """
    if not comment:
        return ""

    cleaned = strip_all_html(comment)
    cleaned = " ".join(cleaned.split())

    return cleaned[:MAX_COMMENT_LENGTH]
