import io
import re
from collections.abc import Sequence

from PIL import Image


def clean_cli_output(output: str) -> str:
    """
    Remove ANSI escape codes, Rich box characters and all whitespace from CLI
    output so assertions survive terminal wrapping.
    """
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    output = ansi_escape.sub("", output)
    return re.sub(r"[\s│╭╮╰╯─]", "", output)


def make_png(width: int = 120, height: int = 80, mode: str = "RGB") -> bytes:
    """Encode a small light test image with one dark line as PNG."""
    light = (250, 250, 250, 200)[: len(mode)]
    dark = (20, 20, 20, 200)[: len(mode)]
    image = Image.new(mode, (width, height), light)
    for x in range(10, width - 10):
        image.putpixel((x, height // 2), dark)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class ScriptedEngine:
    """Recognition engine returning canned transcripts in order.

    The last transcript is repeated once the script runs out.
    """

    def __init__(self, *transcripts: str) -> None:
        self.transcripts = list(transcripts) or [""]
        self.calls: list[bytes] = []

    def extract_text(self, content: bytes, languages: Sequence[str]) -> str:
        self.calls.append(content)
        index = min(len(self.calls), len(self.transcripts)) - 1
        return self.transcripts[index]
