"""Fixed user-facing messages.

The backend and the conversation core substitute these for failures so that no
exception reaches the UI layer.
"""

from enum import Enum


class Language(str, Enum):
    AZ = "az"
    EN = "en"


NO_RESPONSE = "no_response"
SESSION_EXPIRED = "session_expired"
SERVICE_UNAVAILABLE = "service_unavailable"
CONNECTION_ERROR = "connection_error"
AUDIO_FAILED = "audio_failed"
AI_INACTIVE = "ai_inactive"
SERVER_ERROR = "server_error"
INVALID_INPUT = "invalid_input"
CONFIRM_PROMPT = "confirm_prompt"
BONUS_EARNED = "bonus_earned"
RECORDING_FAILED = "recording_failed"
NO_CARD = "no_card"
CODE_MISMATCH = "code_mismatch"
CODE_EXPIRED = "code_expired"
LOCKED_OUT = "locked_out"
GREETING = "greeting"


MESSAGES = {
    Language.AZ: {
        NO_RESPONSE: "AI cavab vermədi. Yenidən cəhd edin.",
        SESSION_EXPIRED: "Sessiyanız bitib. Zəhmət olmasa yenidən giriş edin.",
        SERVICE_UNAVAILABLE: "Xidmət müvəqqəti əlçatmazdır.",
        CONNECTION_ERROR: "Bağlantı xətası. İnterneti və ya girişi yoxlayın.",
        AUDIO_FAILED: "Səs faylını emal edə bilmədim. Zəhmət olmasa yenidən danışın və ya mesaj yazın.",
        AI_INACTIVE: "AI xidməti aktiv deyil (API Key yoxdur).",
        SERVER_ERROR: "Server xətası. Bir az sonra yenidən cəhd edin.",
        INVALID_INPUT: "Mesaj və ya səs faylı göndərilməyib.",
        CONFIRM_PROMPT: "Ödənişi təsdiqləyək?",
        BONUS_EARNED: "🎉 Təbriklər! {partner} ilə ödənişdən {bonus} {currency} bonus qazandınız!",
        RECORDING_FAILED: "Səs yazılması uğursuz oldu",
        NO_CARD: "Heç bir kart tapılmadı",
        CODE_MISMATCH: "Təsdiq kodu yanlışdır.",
        CODE_EXPIRED: "Təsdiq kodunun vaxtı bitib. Yeni kod göndərin.",
        LOCKED_OUT: "Çox sayda yanlış cəhd. Ödəniş ləğv edildi.",
        GREETING: "Salam! ✨ Sənin maliyyə dostun buradadır. 😊 Bu gün sənə necə kömək edə bilərəm? Ödənişlərin var, yoxsa sadəcə büdcəni planlayaq? 🚀",
    },
    Language.EN: {
        NO_RESPONSE: "The assistant did not respond. Please try again.",
        SESSION_EXPIRED: "Your session has expired. Please sign in again.",
        SERVICE_UNAVAILABLE: "Service temporarily unavailable.",
        CONNECTION_ERROR: "Connection error. Check your internet or sign-in.",
        AUDIO_FAILED: "I could not process the audio. Please speak again or type a message.",
        AI_INACTIVE: "AI service is not active (missing API key).",
        SERVER_ERROR: "Server error. Please try again shortly.",
        INVALID_INPUT: "Neither a message nor an audio clip was sent.",
        CONFIRM_PROMPT: "Shall we confirm the payment?",
        BONUS_EARNED: "🎉 Congratulations! You earned {bonus} {currency} bonus from {partner}!",
        RECORDING_FAILED: "Voice recording failed",
        NO_CARD: "No card available",
        CODE_MISMATCH: "Incorrect confirmation code.",
        CODE_EXPIRED: "The confirmation code has expired. Request a new one.",
        LOCKED_OUT: "Too many incorrect attempts. The payment was cancelled.",
        GREETING: "Hello! ✨ Your financial friend is here. 😊 How can I help you today? Have payments to make, or should we plan your budget? 🚀",
    },
}


def get_message(key: str, language: Language | str = Language.AZ, **kwargs) -> str:
    """Look up a fixed message, falling back to Azerbaijani."""
    try:
        lang = Language(language)
    except ValueError:
        lang = Language.AZ
    text = MESSAGES[lang].get(key) or MESSAGES[Language.AZ][key]
    return text.format(**kwargs) if kwargs else text
