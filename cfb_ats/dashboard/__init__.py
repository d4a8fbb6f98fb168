"""
Terminal reports for CFB ATS.

Example:
    >>> from cfb_ats.dashboard import ATSReport
    >>> ATSReport().render_summary(summary)
"""

from .terminal import ATSReport

__all__ = [
    "ATSReport",
]
