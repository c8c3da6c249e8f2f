"""agent-meter: structured progress signals from AI coding-agent output."""

from agent_meter.parser import parse_chunk
from agent_meter.progress import estimate_progress, summarize
from agent_meter.state import ParserState, create_state

__version__ = "0.1.0"

__all__ = ["ParserState", "create_state", "estimate_progress", "parse_chunk", "summarize"]
