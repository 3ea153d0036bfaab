"""
PayPilot API Server
Exposes the intent endpoint (POST /ai-chat) that the chat client calls.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

# Load environment variables (API keys)
load_dotenv()

from paypilot import __version__
from paypilot.agent import IntentInterpreter, InboundMessage
from paypilot.auth import AuthVerifier
from paypilot.config import settings
from paypilot.errors import BackendUnavailableError, InvalidInputError
from paypilot.messages import AI_INACTIVE, INVALID_INPUT, SERVER_ERROR, SESSION_EXPIRED, get_message
from paypilot.schema import MessageIntent

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# FastAPI App
app = FastAPI(title="PayPilot API", version=__version__)

# CORS: the chat client calls from any origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


class PayPilotContainer:
    """Lazily built singletons. The interpreter needs GEMINI_API_KEY, so it is created on first use."""

    def __init__(self):
        self.auth = AuthVerifier()
        self.interpreter: Optional[IntentInterpreter] = None

    def get_interpreter(self) -> IntentInterpreter:
        if self.interpreter is None:
            self.interpreter = IntentInterpreter()
        return self.interpreter


container = PayPilotContainer()


def message_response(text: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=MessageIntent(text=text).model_dump(mode="json"),
    )


# Routes
@app.get("/")
async def root():
    return {"status": "online", "system": "PayPilot"}


@app.post("/ai-chat")
async def ai_chat(request: Request):
    """
    Resolve one user turn into a structured intent.

    Body: {text?, audio?, mimeType?, history?}. Response: the intent wire form.
    """
    language = settings.language

    # 1. Authentication (permissive unless require_auth)
    user_id = await container.auth.verify(request.headers.get("authorization"))
    if user_id is None and settings.require_auth:
        return message_response(get_message(SESSION_EXPIRED, language), 401)

    # 2. Gemini key
    try:
        interpreter = container.get_interpreter()
    except ValueError as e:
        logger.error(f"Config Error: {e}")
        return message_response(get_message(AI_INACTIVE, language), 500)

    # 3. Request body
    try:
        message = InboundMessage.model_validate(await request.json())
    except (ValueError, PydanticValidationError) as e:
        logger.warning(f"Rejected request body: {e}")
        return message_response(get_message(INVALID_INPUT, language), 400)

    if message.has_audio:
        logger.info(f"Processing audio input ({len(message.audio)} chars, {message.mime_type})")
    else:
        logger.info(f"Processing text input with {len(message.history)} history items")

    # 4. Interpretation
    try:
        intent = await interpreter.interpret(message, language)
    except InvalidInputError as e:
        logger.warning(f"Invalid input: {e.message}")
        return message_response(get_message(INVALID_INPUT, language), 400)
    except BackendUnavailableError as e:
        logger.error(f"Backend failure: {e.message}")
        return message_response(get_message(SERVER_ERROR, language), 500)
    except Exception as e:
        logger.exception(f"Intent processing failed: {e}")
        return message_response(get_message(SERVER_ERROR, language), 500)

    return JSONResponse(content=intent.model_dump(mode="json", exclude_none=True))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
