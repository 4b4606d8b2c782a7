from pygments.style import Style
from pygments.token import Keyword, Name, Number, Punctuation, String, Token


class LogStyle(Style):
    """Muted JSON highlighting for structured log extras on a dark terminal."""

    background_color = None
    styles = {
        Token: "#8a8a8a",
        Punctuation: "#6c6c6c",
        Name.Tag: "#5fafd7",
        String: "#87af87",
        String.Double: "#87af87",
        Number: "#d7af5f",
        Keyword.Constant: "#d787af",
    }
