"""Language code helpers for prompts and logs."""

from __future__ import annotations

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "ru": "Russian",
    "it": "Italian",
    "pt": "Portuguese",
    "pl": "Polish",
    "nl": "Dutch",
    "tr": "Turkish",
    "ar": "Arabic",
    "hi": "Hindi",
    "th": "Thai",
    "vi": "Vietnamese",
    "sv": "Swedish",
    "da": "Danish",
    "no": "Norwegian",
    "fi": "Finnish",
    "he": "Hebrew",
    "hu": "Hungarian",
    "cs": "Czech",
    "sk": "Slovak",
    "bg": "Bulgarian",
    "hr": "Croatian",
    "sl": "Slovenian",
    "et": "Estonian",
    "lv": "Latvian",
    "lt": "Lithuanian",
    "mt": "Maltese",
    "ga": "Irish",
    "cy": "Welsh",
    "eu": "Basque",
    "ca": "Catalan",
    "gl": "Galician",
    "is": "Icelandic",
    "mk": "Macedonian",
    "sq": "Albanian",
    "be": "Belarusian",
    "uk": "Ukrainian",
    "az": "Azerbaijani",
    "kk": "Kazakh",
    "ky": "Kyrgyz",
    "uz": "Uzbek",
    "tg": "Tajik",
    "am": "Amharic",
    "ka": "Georgian",
    "hy": "Armenian",
    "ne": "Nepali",
    "si": "Sinhala",
    "my": "Burmese",
    "km": "Khmer",
    "lo": "Lao",
    "gu": "Gujarati",
    "pa": "Punjabi",
    "ta": "Tamil",
    "te": "Telugu",
    "kn": "Kannada",
    "ml": "Malayalam",
    "bn": "Bengali",
    "as": "Assamese",
    "or": "Odia",
    "mr": "Marathi",
}


def normalize_language(code: str | None) -> str:
    """Lower-case a language code and drop any region suffix (`pt-BR` -> `pt`)."""
    raw = str(code or "").strip().lower().replace("_", "-")
    return raw.split("-", 1)[0] if raw else ""


def language_name(code: str) -> str:
    """Human readable name for a language code; unknown codes are returned as-is."""
    return LANGUAGE_NAMES.get(normalize_language(code), str(code))
