"""Templated responses served when no real provider credential is configured."""

from __future__ import annotations

import asyncio
import re
from textwrap import dedent

from .config import DEMO_MODEL
from .types import AIResponse, ProviderName, TokenUsage

_GREETING = re.compile(r"\b(hello|hi|hey)\b")

_EMAIL_SUMMARY = dedent(
    """\
    ## Email Summary

    Here's what I found in your inbox:

    **High Priority (3 emails):**
    - Sarah Johnson - Project deadline update (urgent)
    - Marketing Team - Q4 campaign review needed
    - IT Support - Security update required by Friday

    **Regular Messages (7 emails):**
    - Meeting confirmations and calendar updates
    - Newsletter subscriptions
    - Team announcements

    **Recommendation:** Tackle the high-priority emails first. Would you like help drafting responses?"""
)

_EMAIL_REPLY = dedent(
    """\
    ## Email Response Assistant

    I can help you craft a professional response. Quick templates:
    - "Thanks for the update, I'll review and respond by [time]"
    - "Received, let me check with the team and get back to you"
    - "Appreciate the heads up, I'll prioritize this today"

    What type of response would work best for your situation?"""
)

_EMAIL_ORGANIZE = dedent(
    """\
    ## Inbox Organization Strategy

    **Suggested Actions:**
    - Create folders: Projects, Clients, Admin, Reading List
    - Set up rules for automatic sorting by sender or subject
    - Archive emails older than 30 days
    - Unsubscribe from newsletters you no longer read

    Would you like me to walk you through setting up any of these?"""
)

_EMAIL_GENERAL = dedent(
    """\
    ## Email Management Help

    I can summarize your inbox, draft responses, and set up organization rules.

    **Quick Tip:** If an email takes less than 2 minutes to handle, do it immediately.

    What specific email challenge can I help you with today?"""
)

_CALENDAR_SCHEDULE = dedent(
    """\
    ## Meeting Scheduling Assistant

    **Available Slots Today:**
    - 2:00 PM - 3:00 PM
    - 4:30 PM - 5:30 PM

    **Tomorrow's Options:**
    - 10:00 AM - 11:30 AM
    - 1:00 PM - 2:30 PM

    Who needs to attend, and how long should the meeting be?"""
)

_CALENDAR_RESCHEDULE = dedent(
    """\
    ## Meeting Rescheduling Help

    1. Check availability for all attendees
    2. Propose 2-3 alternative times
    3. Send a short reschedule request
    4. Update the calendar once confirmed

    Which meeting needs to move, and do you have preferred alternatives?"""
)

_CALENDAR_AGENDA = dedent(
    """\
    ## Your Schedule Overview

    **Morning:**
    - 9:00 AM - Team Standup (30 min)
    - 10:30 AM - Project Review with Sarah (1 hour)

    **Afternoon:**
    - 1:00 PM - Lunch meeting with client (1.5 hours)
    - 3:00 PM - Strategy planning session (1 hour)
    - 4:30 PM - One-on-one with manager (30 min)

    Would you like help preparing for any of these meetings?"""
)

_CALENDAR_GENERAL = dedent(
    """\
    ## Calendar Management Assistant

    I can find meeting times, resolve conflicts, build agendas, and block focus time.

    What aspect of your calendar would you like to improve?"""
)

_TASKS = dedent(
    """\
    ## Task Management Overview

    **High Priority:**
    - Complete quarterly report (due tomorrow)
    - Review contract terms (due this week)

    **Medium Priority:**
    - Update project timeline
    - Schedule team one-on-ones

    Which task would you like help breaking down?"""
)

_PRODUCTIVITY = dedent(
    """\
    ## Productivity Insights & Tips

    - **Time-blocking:** Reserve your peak hours for important work
    - **Batch processing:** Group emails, calls and admin together
    - **Pomodoro:** Work in focused 25-minute sessions

    What productivity challenge would you like to work on?"""
)

_GREETING_TEXT = dedent(
    """\
    ## Welcome to Your AI Assistant!

    I can help with email management, calendar and meetings, and task prioritization.

    Try: "Help me organize my inbox" or "Find time for a team meeting".

    What would you like to work on first?"""
)

_HELP = dedent(
    """\
    ## How I Can Assist You

    - **Email:** inbox organization, drafting, prioritization
    - **Calendar:** scheduling, rescheduling, agendas
    - **Tasks:** prioritization, project breakdown, daily planning

    Try asking: "Summarize my important emails" or "Help me prioritize my tasks"."""
)

_DEFAULT = dedent(
    """\
    ## I'm Here to Help!

    I didn't quite catch what you're looking for. I specialize in email management,
    calendar scheduling and task productivity.

    Could you rephrase your question or try "Summarize my unread emails"?"""
)


def _contains(message: str, *words: str) -> bool:
    return any(word in message for word in words)


def select_demo_content(user_message: str) -> str:
    """Pick the canned answer matching the topic of *user_message*."""

    message = user_message.lower().strip()

    if _contains(message, "email", "inbox", "message"):
        if _contains(message, "summarize", "summary"):
            return _EMAIL_SUMMARY
        if _contains(message, "reply", "respond"):
            return _EMAIL_REPLY
        if _contains(message, "organize", "sort"):
            return _EMAIL_ORGANIZE
        return _EMAIL_GENERAL

    if _contains(message, "meeting", "schedule", "calendar"):
        if _contains(message, "reschedule", "move"):
            return _CALENDAR_RESCHEDULE
        if _contains(message, "schedule", "book"):
            return _CALENDAR_SCHEDULE
        if _contains(message, "agenda", "today", "tomorrow"):
            return _CALENDAR_AGENDA
        return _CALENDAR_GENERAL

    if _contains(message, "task", "todo"):
        return _TASKS
    if _contains(message, "productivity", "focus"):
        return _PRODUCTIVITY
    if _GREETING.search(message):
        return _GREETING_TEXT
    if _contains(message, "help", "what can you do"):
        return _HELP
    return _DEFAULT


async def generate_demo_response(user_message: str, *, delay: float = 0.0) -> AIResponse:
    """Return a templated completion shaped exactly like a provider response."""

    if delay > 0:
        await asyncio.sleep(delay)

    content = select_demo_content(user_message)
    usage = TokenUsage.from_counts(len(user_message) // 4 + 50, len(content) // 4)
    return AIResponse(content=content, provider=ProviderName.DEMO, model=DEMO_MODEL, usage=usage)


__all__ = ("generate_demo_response", "select_demo_content")
