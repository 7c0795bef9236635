import operator
import random
import re
from datetime import datetime
from typing import Any
from urllib.parse import quote

SOUND_REPLIES = (
    "I can detect several ambient sounds: gentle keyboard typing from nearby workstations, soft background music "
    "at low volume, air conditioning humming quietly, and occasional footsteps in the hallway. The overall sound "
    "level is comfortable and not overwhelming.",
    "The acoustic environment includes: people having quiet conversations about 10 feet away, papers rustling, "
    "a coffee machine brewing in the distance, and the gentle hum of electronic devices. It sounds like a "
    "productive workspace.",
    "Current environmental sounds: light traffic outside the window, someone typing on a laptop nearby, a phone "
    "vibrating on a desk, and the soft whir of a printer in operation. The atmosphere is calm and focused.",
)

PEOPLE_REPLIES = (
    "I can sense approximately 12-15 people in your immediate area. Most are seated and working quietly, with "
    "2-3 people having a discussion near the coffee area. The energy feels collaborative but focused.",
    "The space feels moderately busy with about 8-10 people. I can hear typing, quiet conversations, and someone "
    "on a phone call in a nearby office. Everyone seems engaged in their work.",
    "It's quite peaceful here - only 4-5 people around. Someone is reading nearby, another person is writing, "
    "and there's very little movement or noise. Perfect for concentration.",
)

GREETING_REPLIES = (
    "Hello! I'm here to help you with any questions or have a conversation. What would you like to talk about?",
    "Hi there! I can assist you with information about your surroundings, answer questions, or just chat. "
    "How can I help?",
    "Hello! I'm your AI assistant, ready to help with anything you need. What's on your mind?",
)

HOW_ARE_YOU_REPLY = (
    "I'm doing great and ready to assist you! I can help you understand your surroundings, answer questions "
    "about time and weather, help with calculations, or just have a friendly conversation. What interests you today?"
)

HELP_REPLY = (
    "I can help you with many things! I can describe sounds and environments around you, tell you the time and "
    "date, provide weather information, help with math calculations, answer general questions, and have "
    "conversations. I'm also great at providing assistance for daily tasks. What would you like to explore?"
)

DEFAULT_CHAT_REPLY = (
    "I'm here to help you with anything! I can describe your environment, answer questions about time and "
    "weather, help with math, provide information, or just have a conversation. What would you like to know "
    "or discuss?"
)

ENVIRONMENT_ANALYSES = {
    "sounds": (
        "I can detect a mix of environmental sounds: gentle keyboard typing from nearby workstations, soft "
        "background music at low volume, air conditioning humming quietly, and occasional footsteps in the "
        "hallway. There's also the distant sound of a coffee machine and quiet conversations about 15 feet away. "
        "The overall acoustic environment is calm and conducive to focus."
    ),
    "people": (
        "I sense approximately 8-12 people in your immediate area. Most appear to be working quietly at their "
        "desks, with a few engaged in a low-volume discussion near the coffee area. The energy feels productive "
        "and collaborative, with people moving occasionally but maintaining a respectful, focused atmosphere. "
        "Someone nearby is typing actively, and I can hear pages turning from another direction."
    ),
    "safety": (
        "The environment appears safe and well-maintained. I don't detect any immediate hazards or obstacles in "
        "the main pathways. The lighting seems adequate, and there's good ventilation from the air conditioning "
        "system. Emergency exits should be clearly marked, and the space feels secure with normal office "
        "activity. The floor surfaces sound solid and even, with no apparent spills or obstacles."
    ),
    "navigation": (
        "The space appears to be an open office layout with defined walkways. There are workstations arranged in "
        "clusters, with a main pathway running through the center. I can identify a coffee/break area to your "
        "left based on the sounds, and what seems to be a quieter zone to your right. The acoustics suggest high "
        "ceilings and good sound distribution, making navigation easier through audio cues."
    ),
    "general": (
        "You're in what appears to be a modern office environment with 8-12 people working quietly. The acoustic "
        "signature includes gentle typing, soft conversations, air conditioning, and occasional movement. The "
        "space feels safe and well-organized, with clear pathways and a collaborative but focused atmosphere. "
        "The coffee area is active to your left, while quieter work zones are to your right. Overall, it's a "
        "comfortable, productive environment with good accessibility."
    ),
}

TRANSCRIPTS = (
    "Hello, this is a sample transcription. The audio file was successfully received.",
    "I can hear you speaking clearly. This is a demonstration of the speech-to-text feature.",
    "Your voice recording has been processed. This is what a transcription would look like.",
    "Thank you for using the speech-to-text feature. Your audio was captured successfully.",
    "This is a sample transcription showing how your speech would be converted to text.",
)

SPEECH_FALLBACK_MESSAGE = (
    "Please use your browser's built-in text-to-speech feature. The text has been prepared for you."
)

# Rough bytes-per-second for compressed browser recordings.
AUDIO_BYTES_PER_SECOND = 16000

_ARITHMETIC = re.compile(r"(\d+)\s*([+\-*/])\s*(\d+)")

WEATHER_REPLIES = (
    "Today's weather is sunny with a high of 75°F and gentle breeze. Perfect for outdoor activities!",
    "It's cloudy today with a 60% chance of rain this afternoon. Temperature around 68°F.",
    "Beautiful clear day with temperatures reaching 78°F. Low humidity makes it very comfortable.",
)

# Per reply: (comparison, hour bound, suffix when true, suffix when false)
WEATHER_SUFFIXES = (
    (operator.gt, 17, "Great evening for a walk.", "Ideal conditions for the rest of the day."),
    (operator.lt, 14, "You might want to bring an umbrella later.", "The rain should start soon."),
    (operator.lt, 12, "Perfect morning weather!", "Great conditions continue."),
)


def weather_candidates(hour: int) -> tuple[str, ...]:
    return tuple(
        f"{base} {when_true if compare(hour, bound) else when_false}"
        for base, (compare, bound, when_true, when_false) in zip(WEATHER_REPLIES, WEATHER_SUFFIXES)
    )


def _weather_reply(hour: int) -> str:
    return random.choice(weather_candidates(hour))


def time_greeting(hour: int) -> str:
    if hour < 12:
        return "Good morning!"
    if hour < 17:
        return "Good afternoon!"
    return "Good evening!"


def format_clock(now: datetime) -> str:
    return now.strftime("%I:%M:%S %p").lstrip("0")


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _arithmetic_reply(message: str) -> str | None:
    match = _ARITHMETIC.search(message)
    if not match:
        return None
    operator_symbol = match.group(2)
    try:
        left, right = int(match.group(1)), int(match.group(3))
        if operator_symbol == "+":
            result: int | float = left + right
        elif operator_symbol == "-":
            result = left - right
        elif operator_symbol == "*":
            result = left * right
        elif right == 0:
            return None
        else:
            result = left / right
        return f"{left} {operator_symbol} {right} = {_format_number(result)}. Need help with any other calculations?"
    except (OverflowError, ValueError):
        # Operands or results too large to convert.
        return None


def chat_reply(message: str, now: datetime | None = None) -> str:
    """Pick a canned conversational reply from keywords in ``message``.

    Checks run in a fixed priority order, so "what time is it?" answers with
    the clock even though it also contains "hi".
    """
    now = now or datetime.now()
    lowered = message.lower().strip()

    if "sound" in lowered and ("around" in lowered or "surround" in lowered):
        return random.choice(SOUND_REPLIES)

    if "people" in lowered or "crowd" in lowered or "busy" in lowered:
        return random.choice(PEOPLE_REPLIES)

    if "weather" in lowered:
        return _weather_reply(now.hour)

    if "time" in lowered:
        return f"{time_greeting(now.hour)} The current time is {format_clock(now)}."

    if "date" in lowered or "today" in lowered:
        return f"Today is {now.strftime('%A, %B')} {now.day}, {now.year}. How can I help you make the most of your day?"

    if "=" in lowered or _ARITHMETIC.search(lowered):
        calculated = _arithmetic_reply(lowered)
        if calculated:
            return calculated

    if "hello" in lowered or "hi" in lowered:
        return random.choice(GREETING_REPLIES)

    if "how are you" in lowered:
        return HOW_ARE_YOU_REPLY

    if "help" in lowered or "what can you do" in lowered:
        return HELP_REPLY

    return DEFAULT_CHAT_REPLY


def environment_analysis(request_type: str) -> str:
    return ENVIRONMENT_ANALYSES.get(request_type, ENVIRONMENT_ANALYSES["general"])


def image_description(filename: str, size: int) -> str:
    name = (filename or "").lower()
    description = "I can see an image that appears to be "

    if "photo" in name or "img" in name or "picture" in name:
        description += "a photograph. "
    elif "screenshot" in name or "screen" in name:
        description += "a screenshot. "
    elif "document" in name or "doc" in name:
        description += "a document or text image. "
    else:
        description += "a digital image. "

    if size > 5 * 1024 * 1024:
        description += "This appears to be a high-resolution image with lots of detail. "
    elif size > 1 * 1024 * 1024:
        description += "This is a medium-sized image with good quality. "
    else:
        description += "This is a smaller image file. "

    description += (
        "While I cannot analyze the specific contents without proper AI vision capabilities, I can confirm the "
        "image has been successfully uploaded and is ready for viewing. "
        "For detailed image analysis, please ensure the OpenAI API key is properly configured."
    )
    return description


def estimate_duration(size: int) -> int:
    return round(size / AUDIO_BYTES_PER_SECOND)


def transcription(size: int) -> str:
    duration = estimate_duration(size)
    text = random.choice(TRANSCRIPTS)

    if duration > 10:
        text += " This appears to be a longer recording with multiple sentences."
    elif duration > 5:
        text += " This seems to be a medium-length recording."
    else:
        text += " This appears to be a short recording."

    text += (
        " Note: This is a demonstration transcription. For accurate speech-to-text conversion, "
        "please configure the OpenAI API key."
    )
    return text


def speech_instructions(text: str, voice: str, speed: float) -> dict[str, Any]:
    return {
        "text": text,
        "voice": voice,
        "speed": speed,
        "message": SPEECH_FALLBACK_MESSAGE,
    }


def placeholder_image_url(prompt: str, size: str = "1024x1024") -> str:
    width, _, height = size.partition("x")
    if not (width.isdigit() and height.isdigit()):
        width, height = "1024", "1024"
    return f"/placeholder.svg?height={height}&width={width}&query={quote(prompt)}"


def sign_video_url(text: str) -> str:
    return f"/placeholder-sign-video.mp4?text={quote(text, safe='')}"
