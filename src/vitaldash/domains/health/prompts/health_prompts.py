"""MCP Prompts: pre-built interaction templates for dashboard user journeys."""

from __future__ import annotations

from fastmcp import FastMCP


def register_health_prompts(mcp: FastMCP) -> None:
    """Register dashboard MCP prompts."""

    @mcp.prompt()
    def report_review_prompt(report_title: str = "my latest report") -> str:
        """Prompt template for reviewing an uploaded medical report."""
        return f"""I'd like to review {report_title}. Please:

1. List my reports and find the right one
2. Run the AI analysis if it hasn't been analyzed yet
3. Explain any abnormal findings in plain language
4. Tell me whether I should see a doctor soon

Remember this is informational, not a diagnosis."""

    @mcp.prompt()
    def vitals_check_prompt(device_name: str = "my device") -> str:
        """Prompt template for checking live vitals from a device."""
        return f"""Let's check my vitals from {device_name}. I'd like to:

1. Select the device and see my latest heart rate, SpO2 and temperature
2. Look at the recent trend in the chart window
3. Get an AI interpretation of the current readings
4. Check whether I have any unread health alerts"""
