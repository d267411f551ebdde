"""
Prompts for the Calendar Command Interpreter

This module contains ALL the prompts the interpreter sends to the language
model. No prompts should exist outside this file.
"""

from langchain_core.prompts import PromptTemplate

# Anaphora rewrite: substitute concrete events for "that", "it", ...
CONTEXT_RESOLUTION_PROMPT = PromptTemplate.from_template("""You rewrite calendar requests so they no longer depend on earlier conversation.

Recent calendar actions (most recent first):
{recent_events}

Last operation: {last_operation}

User message: "{message}"

Replace pronouns and vague references ("that", "it", "the event", "that meeting", ...) with the concrete event title and date they refer to.
Keep everything else exactly as the user wrote it.
Respond with the rewritten message only, no quotes and no explanation.""")

# Intent classification: strict JSON matching the Intent shape
INTENT_CLASSIFICATION_PROMPT = PromptTemplate.from_template("""Analyze this calendar assistant message and determine the intent. Today is {today}.

User message: "{message}"

Respond with JSON only, in this format:
{{
  "type": "QUERY_EVENTS" or "CREATE_EVENT" or "DELETE_EVENT",
  "keywords": ["array", "of", "relevant", "keywords"],
  "timeframe": "past" or "future" or "specific_date" or null,
  "date_mentioned": "YYYY-MM-DD" or null,
  "delete_all": true or false
}}

Rules:
- keywords are the words that identify WHICH events are meant (titles, people, places). Do not include verbs like "delete" or words like "all", "events", "calendar".
- delete_all is true only when the user means every matching event, not a single one.
- For "clear my calendar" or "remove everything" keywords must be empty.

Examples:
- "When was my last dentist appointment?" -> {{"type": "QUERY_EVENTS", "keywords": ["dentist"], "timeframe": "past", "date_mentioned": null, "delete_all": false}}
- "What meetings do I have tomorrow?" -> {{"type": "QUERY_EVENTS", "keywords": ["meeting"], "timeframe": "specific_date", "date_mentioned": "<tomorrow's date>", "delete_all": false}}
- "Schedule dinner with John at 7 PM Friday" -> {{"type": "CREATE_EVENT", "keywords": ["dinner", "John"], "timeframe": "future", "date_mentioned": null, "delete_all": false}}
- "Delete my dentist appointment" -> {{"type": "DELETE_EVENT", "keywords": ["dentist"], "timeframe": null, "date_mentioned": null, "delete_all": false}}
- "Delete all focus time" -> {{"type": "DELETE_EVENT", "keywords": ["focus"], "timeframe": null, "date_mentioned": null, "delete_all": true}}
- "Delete all my gym sessions next week" -> {{"type": "DELETE_EVENT", "keywords": ["gym"], "timeframe": "future", "date_mentioned": null, "delete_all": true}}
- "Clear my calendar" -> {{"type": "DELETE_EVENT", "keywords": [], "timeframe": null, "date_mentioned": null, "delete_all": true}}
- "Remove everything" -> {{"type": "DELETE_EVENT", "keywords": [], "timeframe": null, "date_mentioned": null, "delete_all": true}}
- "Delete all my past events" -> {{"type": "DELETE_EVENT", "keywords": [], "timeframe": "past", "date_mentioned": null, "delete_all": true}}""")

# Deletion narrowing: pick the candidates the user actually means
DELETION_SELECTION_PROMPT = PromptTemplate.from_template("""The user wants to delete calendar events.

User message: "{message}"
Search keywords: {keywords}
The user {scope}.

Candidate events:
{candidates}

Select the candidates the user actually means. Only select events that clearly match the request; if none match, return an empty list.

Respond with JSON only:
{{"indices": [candidate numbers], "confidence": "high" or "medium" or "low"}}""")

# Event creation: structured extraction with relative dates resolved
EVENT_EXTRACTION_PROMPT = PromptTemplate.from_template("""Extract the calendar event the user wants to create.

Current date: {today} ({weekday}). Current time: {current_time}. Timezone: {timezone}.

User message: "{message}"

Resolve relative dates ("today", "tomorrow", "Friday", "next Monday") against the current date.
Use 24-hour HH:MM for times. Leave a field null when the user did not give it; do not invent times.

Respond with JSON only:
{{
  "title": "short event title",
  "date": "YYYY-MM-DD",
  "startTime": "HH:MM" or null,
  "endTime": "HH:MM" or null,
  "location": string or null,
  "description": string or null,
  "isAllDay": true or false,
  "recurrence": "RRULE:..." or "daily" / "weekly" / "monthly" / "yearly" or null
}}

Example (current date 2025-01-06, Monday):
"Schedule dinner with John at 7 PM Friday" -> {{"title": "Dinner with John", "date": "2025-01-10", "startTime": "19:00", "endTime": null, "location": null, "description": null, "isAllDay": false, "recurrence": null}}""")

# Query answering grounded in the retrieved events only
RESPONSE_PROMPT = PromptTemplate.from_template("""You are a helpful calendar assistant. Answer the user's question based on their calendar events.

User question: "{message}"

Calendar events context:
{context}

STRICT RESPONSE RULES:
- ONLY use the events listed above; never invent events, dates or times
- If no relevant events are listed, let the user know politely
- Be specific about dates and times when possible
- Keep the answer short and conversational""")
