import re
from typing import Any

FINGERSPELL_IMAGE = "/placeholder-signs/fingerspell.jpg"

# word -> (image slug, gloss, description)
_SIGNS: dict[str, tuple[str, str, str]] = {
    "hello": ("hello", "HELLO", "Wave hand with open palm"),
    "hi": ("hello", "HELLO", "Wave hand with open palm"),
    "how": ("how", "HOW", "Curved hands moving apart"),
    "are": ("are", "ARE", "Point forward with R handshape"),
    "you": ("you", "YOU", "Point to person"),
    "thank": ("thank", "THANK", "Hand moves from chin forward"),
    "thanks": ("thank", "THANK", "Hand moves from chin forward"),
    "very": ("very", "VERY", "V handshapes moving apart"),
    "much": ("much", "MUCH", "Claw hands moving apart"),
    "i": ("i", "I", "Point to self"),
    "love": ("love", "LOVE", "Arms crossed over heart"),
    "need": ("need", "NEED", "X handshape moving down"),
    "help": ("help", "HELP", "Flat hand on fist, both move up"),
    "please": ("please", "PLEASE", "Flat hand circles on chest"),
    "what": ("what", "WHAT", "Index finger wiggling"),
    "time": ("time", "TIME", "Tap wrist with index finger"),
    "is": ("is", "IS", "I handshape moving forward"),
    "it": ("it", "IT", "Point to object or space"),
    "where": ("where", "WHERE", "Index finger shaking side to side"),
    "bathroom": ("bathroom", "BATHROOM", "T handshape shaking"),
    "hungry": ("hungry", "HUNGRY", "C handshape down chest"),
    "am": ("am", "AM", "A handshape moving forward"),
    "good": ("good", "GOOD", "Flat hand from chin to other hand"),
    "morning": ("morning", "MORNING", "Flat hand rising like sun"),
}

SIGN_DICTIONARY: dict[str, dict[str, str]] = {
    word: {
        "word": word,
        "signImage": f"/placeholder-signs/{slug}.jpg",
        "gloss": gloss,
        "description": description,
    }
    for word, (slug, gloss, description) in _SIGNS.items()
}

_PUNCTUATION = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    return [word for word in _PUNCTUATION.sub("", text.lower()).split() if word]


def sign_for(word: str) -> dict[str, str]:
    known = SIGN_DICTIONARY.get(word)
    if known:
        return dict(known)
    return {
        "word": word,
        "signImage": FINGERSPELL_IMAGE,
        "gloss": "-".join(word).upper(),
        "description": f"Fingerspell: {word.upper()}",
    }


def translate(text: str, language: str = "en") -> dict[str, Any]:
    words = [sign_for(word) for word in tokenize(text)]
    return {
        "words": words,
        "fullGloss": " ".join(word["gloss"] for word in words),
        "originalText": text,
        "language": language,
    }
