"""Unit tests for the system prompt."""
from __future__ import annotations

from datetime import datetime

from prompts import get_system_prompt


def test_fills_architecture_and_date():
    prompt = get_system_prompt(architecture="arm64", now=datetime(2025, 3, 7))
    assert "using arm64 architecture" in prompt
    assert "The current date is Friday, March 7, 2025." in prompt
    assert prompt.startswith("<SYSTEM_CAPABILITY>")
    assert prompt.endswith("</IMPORTANT>")


def test_suffix_appended_after_space():
    prompt = get_system_prompt("Only use the playwright tool.", architecture="x86_64")
    assert prompt.endswith("</IMPORTANT> Only use the playwright tool.")


def test_mentions_navigation_tool():
    assert "playwright tool's goto method" in get_system_prompt(architecture="x86_64")
