from __future__ import annotations

import json
from datetime import date
from typing import Optional

from llm.providers.base import LLMProvider


class MockProvider(LLMProvider):
    """Offline provider used when no API key is configured.

    Returns dummy JSON responses shaped after the prompt kind.
    """

    def generate(
        self,
        *,
        system: str,
        user: str,
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
    ) -> str:
        # Enhancement request
        if '"enhancedTitle"' in system:
            return json.dumps({
                "originalTask": user,
                "enhancedTitle": user.strip().capitalize(),
                "description": f"Work through '{user.strip()}' step by step",
                "subtasks": [
                    "Clarify the expected outcome",
                    f"Do the work: {user.strip()}",
                    "Review the result",
                ],
                "priority": "medium",
                "estimatedTime": "30 minutes",
                "category": "general",
                "tags": [],
            })

        # Natural-language parsing request
        if '"dueTime"' in system:
            return json.dumps({
                "title": user.strip(),
                "dueDate": None,
                "dueTime": None,
                "priority": "medium",
                "tags": [],
            })

        # Daily plan request
        if '"timeBlocks"' in system:
            return json.dumps({
                "timeBlocks": [],
                "insights": ["Offline mode: connect an AI provider for an optimized schedule"],
                "recommendations": ["Start with your highest-priority task"],
                "totalFocusTime": "0 hours",
                "productivityScore": 0,
                "dailySummary": {"date": date.today().isoformat()},
            })

        # Coaching request
        if "productivity coach" in system:
            return json.dumps([
                {
                    "type": "suggestion",
                    "title": "Keep Going!",
                    "description": "You're making great progress on your tasks today.",
                    "actionable": False,
                    "priority": 3,
                }
            ])

        # Default fallback
        return "{}"
