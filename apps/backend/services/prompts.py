import json

SYSTEM_PROMPT = """You are an expert at extracting structured timetable data from teacher schedules.
You must output valid JSON only, following the exact schema provided.

Your task is to:
1. Identify all time blocks (classes, breaks, activities, registration, etc.)
2. Extract accurate start and end times
3. Preserve original subject names exactly as they appear
4. Include any notes or additional details
5. Identify the day of the week for each block
6. Determine the subject type (academic, break, administrative, or other)

Important guidelines:
- Be precise with times - if you see "9:30 - 10am", that's 9:30 to 10:00
- Use 24-hour "H:MM" or "HH:MM" times
- If times are ambiguous, use your best judgment
- Preserve all original text (don't translate or modify subject names)
- If you can't determine something, use null
- Include ALL blocks you can identify, even small ones like Registration"""

EXAMPLE_OUTPUT = {
    "metadata": {
        "teacher_name": "Miss Joynes",
        "class_name": "2EJ",
        "term": "Autumn 2 2024",
        "school_name": "Little Thurrock Primary School",
        "extraction_confidence": 0.95,
    },
    "timeblocks": [
        {
            "day": "Monday",
            "start_time": "8:35",
            "end_time": "8:50",
            "subject": "Registration and Early Morning Work",
            "subject_type": "administrative",
            "notes": None,
        },
        {
            "day": "Monday",
            "start_time": "9:00",
            "end_time": "9:30",
            "subject": "Maths",
            "subject_type": "academic",
            "notes": None,
        },
    ],
}

_EXAMPLE_JSON = json.dumps(EXAMPLE_OUTPUT, indent=2)

VISION_PROMPT = f"""Extract the timetable data from this image.

Output format (JSON only, no additional text):
{_EXAMPLE_JSON}

Important:
- Extract ALL time blocks you can see
- Be precise with times
- Preserve original subject names
- Identify the day of week for each block
- Provide a confidence score (0-1) for your extraction in metadata
- If you can't read something clearly, mark it as null

Now extract from the provided image:"""


def build_text_prompt(text: str) -> str:
    return f'''Extract the timetable data from this text.

Text content:
"""
{text}
"""

Output format (JSON only, no additional text):
{_EXAMPLE_JSON}

Important:
- Extract ALL time blocks you can identify
- Parse times carefully (handle formats like "9-9.30", "10:30-11:00", etc.)
- Preserve original subject names
- Identify the day of week for each block
- Provide a confidence score (0-1) for your extraction
- If information is missing, use null

Now extract the timetable data:'''
