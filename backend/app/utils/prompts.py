"""Default prompt used by the reading extractor.

Keeping the prompt in a central location makes it easier to iterate on
its content.  The extractor parses the answer strictly, so the prompt
insists on a bare integer.
"""

from __future__ import annotations

from textwrap import dedent


def get_default_reading_prompt() -> str:
    """Return the prompt used for extracting a meter reading.

    The model receives a photograph of a water or gas meter and must
    answer with the register value only.  Anything else in the answer
    is treated by ``parse_reading`` as "no numeric result".
    """
    return dedent(
        """
        You are reading a photograph of a utility meter (water or gas).
        Identify the main consumption register and read its value.

        Rules:
        - Answer with the integer value only, using digits 0-9.
        - Do not include units, spaces, thousands separators or decimals;
          ignore any digits after a decimal point or on red dials.
        - Do not add any explanation.
        - If no meter reading is legible in the image, answer with NONE.
        """
    ).strip()
