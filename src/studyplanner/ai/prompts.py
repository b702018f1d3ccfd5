"""Prompt builders and generation options for the AI assistant features."""

from __future__ import annotations

import json
from datetime import date

from studyplanner.ai.client import GenerationOptions
from studyplanner.db.models import User, UserGamification

PLAN_OPTIONS = GenerationOptions(temperature=0.7, max_tokens=2000)
CHAT_OPTIONS = GenerationOptions(temperature=0.8, max_tokens=500)
SUMMARY_OPTIONS = GenerationOptions(temperature=0.5, max_tokens=800)
TIPS_OPTIONS = GenerationOptions(temperature=0.7, max_tokens=600)
QUIZ_OPTIONS = GenerationOptions(temperature=0.6, max_tokens=1200)

PLAN_SYSTEM = (
    "You are an expert educational AI that creates personalized study plans. "
    "Always respond with valid JSON."
)
SUMMARY_SYSTEM = (
    "You are an educational content summarizer. "
    "Create clear, structured summaries that help students learn effectively."
)
TIPS_SYSTEM = "You are a study coach providing personalized learning strategies."
QUIZ_SYSTEM = (
    "You are an educational content creator. "
    "Generate clear, accurate quiz questions with explanations."
)

_PLAN_SHAPE = """{
  "title": "Study plan title",
  "description": "Brief description",
  "syllabus": [
    {"topic": "Topic name", "subtopics": ["subtopic1", "subtopic2"],
     "estimatedHours": 5, "difficulty": "medium", "priority": 7}
  ],
  "weeklyGoals": [
    {"weekNumber": 1, "startDate": "2024-01-01", "endDate": "2024-01-07",
     "topics": [{"topic": "Topic name", "hours": 10}], "targetHours": 28}
  ],
  "milestones": [
    {"title": "Milestone title", "description": "Description",
     "targetDate": "2024-01-15", "targetPercentage": 50}
  ],
  "aiInsights": [
    {"type": "recommendation", "message": "Focus on fundamentals first", "priority": "high"}
  ]
}"""

_QUIZ_SHAPE = """[
  {"question": "Question text", "options": ["A", "B", "C", "D"],
   "correctAnswer": 0, "explanation": "Why this is correct"}
]"""


def study_plan_prompt(
    user: User,
    subject: str,
    exam_date: date,
    days_until_exam: int,
    total_hours: float,
    daily_hours: float,
    difficulty: str,
    topics: list[str],
) -> str:
    return f"""Create a comprehensive study plan for a student with the following requirements:

Subject: {subject}
Exam Date: {exam_date.isoformat()}
Days until exam: {days_until_exam}
Total study hours available: {total_hours}
Daily study hours: {daily_hours}
Difficulty level: {difficulty}
Topics to cover: {", ".join(topics) if topics else "Standard curriculum"}

Student preferences:
- Preferred study time: {user.preferred_study_time}
- Study session duration: {user.session_minutes} minutes
- Break duration: {user.break_minutes} minutes

Please provide a JSON response with the following structure:
{_PLAN_SHAPE}

Make sure the plan is realistic, well-distributed, and accounts for the student's available time."""


def chat_system_prompt(user: User, gam: UserGamification | None, context: str | None) -> str:
    preferences = {
        "daily_study_hours": user.daily_study_hours,
        "preferred_study_time": user.preferred_study_time,
        "session_minutes": user.session_minutes,
        "break_minutes": user.break_minutes,
    }
    level = gam.level if gam else 1
    streak = gam.current_streak if gam else 0
    return f"""You are an AI study assistant helping students with their academic goals.

Student context:
- Name: {user.name}
- Study preferences: {json.dumps(preferences)}
- Current level: {level}
- Study streak: {streak} days

Additional context: {context or "None"}

Provide helpful, encouraging, and practical study advice. Keep responses concise but informative."""


def summary_prompt(content: str, kind: str) -> str:
    return f"""Please provide a concise summary of the following {kind} content for study purposes:

{content}

Format the summary with:
1. Key points (bullet points)
2. Important concepts to remember
3. Study tips for this topic"""


def study_tips_prompt(
    user: User,
    gam: UserGamification | None,
    subject: str,
    topic: str | None,
    difficulty: str | None,
) -> str:
    streak = gam.current_streak if gam else 0
    return f"""Provide 5 personalized study tips for:
Subject: {subject}
Topic: {topic or "General"}
Difficulty: {difficulty or "medium"}

Student profile:
- Study streak: {streak} days
- Preferred study time: {user.preferred_study_time}
- Session duration: {user.session_minutes} minutes

Make the tips specific, actionable, and encouraging."""


def quiz_prompt(subject: str, topic: str, difficulty: str, question_count: int) -> str:
    return f"""Generate {question_count} {difficulty} level quiz questions about {topic} in {subject}.

Return a JSON array with this structure:
{_QUIZ_SHAPE}"""
