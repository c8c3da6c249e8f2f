"""Regex tables for recognizing agent terminal output.

Each table is ordered: the parser tries the patterns top to bottom and stops
at the first one that matches, so more specific phrasings come first.
"""

import re

_I = re.IGNORECASE

# "[Agent] Task 75% complete", "[Claude] 40% done"
# "Progress: 75%", "Completion: 100%"
PROGRESS = [
    re.compile(r"\[(?:Agent|Claude)\].*?(\d{1,3})%\s*(?:complete|done|progress)", _I),
    re.compile(r"(?:Progress|Completion):\s*(\d{1,3})%", _I),
]

FILE_CREATED = [
    re.compile(r"Created(?:\s+file)?(?::\s*|\s+)[`'\"]*([^\s`'\"]+)[`'\"]*$", _I | re.MULTILINE),
    re.compile(r"\[File\]\s+Created:?\s*(\S+)", _I),
    re.compile(r"Writing\s+to\s+(\S+)", _I),
    re.compile(r"✓\s+Created\s+(\S+)", _I),
    # Claude Code tool calls
    re.compile(r"Write\(([^)]+)\)", _I),
    re.compile(r"Wrote\s+\d+\s+lines?\s+to\s+(\S+)", _I),
]

FILE_MODIFIED = [
    re.compile(r"Modified(?:\s+file)?(?::\s*|\s+)[`'\"]*([^\s`'\"]+)[`'\"]*$", _I | re.MULTILINE),
    re.compile(r"\[File\]\s+Modified:?\s*(\S+)", _I),
    re.compile(r"Updated\s+(\S+)", _I),
    re.compile(r"✓\s+Updated\s+(\S+)", _I),
    re.compile(r"Edit\(([^)]+)\)", _I),
    re.compile(r"Edited\s+(\S+)", _I),
]

FILE_DELETED = [
    re.compile(r"Deleted(?:\s+file)?(?::\s*|\s+)[`'\"]*([^\s`'\"]+)[`'\"]*$", _I | re.MULTILINE),
    re.compile(r"\[File\]\s+Deleted:?\s*(\S+)", _I),
    re.compile(r"Removed\s+(\S+\.\w+)", _I),
]

# Group 1 is always "passed", group 2 is read as "failed" for every pattern,
# including "5/10 tests passing" where it is really the total.
TEST_RESULTS = [
    re.compile(r"(\d+)\s*(?:/|of)\s*(\d+)\s+(?:tests?\s+)?pass(?:ing|ed)?", _I),
    re.compile(r"Tests?:\s*(\d+)\s+passed,\s*(\d+)\s+failed", _I),
    re.compile(r"✓\s*(\d+)\s+passed.*?(?:✗|✕)\s*(\d+)\s+failed", _I),
    re.compile(r"PASS.*?(\d+)\s+passed.*?(\d+)\s+failed", _I),
]

ALL_TESTS_PASSED = [
    re.compile(r"All\s+(\d+)\s+tests?\s+passed", _I),
    re.compile(r"✓\s+(\d+)\s+tests?\s+passing", _I),
]

# Case sensitive on purpose: "error:" inside prose is too common
ERRORS = [
    re.compile(r"(?:Error|ERROR):\s*(.+)"),
    re.compile(r"(?:Failed|FAILED):\s*(.+)"),
    re.compile(r"✗\s+(.+)"),
    re.compile(r"\[ERROR\]\s*(.+)"),
]

WARNINGS = [
    re.compile(r"(?:Warning|WARN):\s*(.+)", _I),
    re.compile(r"⚠️?\s*(.+)"),
]

STATUS = [
    re.compile(r"\[Agent\]\s*(.+)", _I),
    re.compile(r"\[Claude\]\s*(.+)", _I),
    re.compile(r"\[Status\]\s*(.+)", _I),
    re.compile(r"→\s*(.+)"),
]
