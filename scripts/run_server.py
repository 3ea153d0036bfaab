"""
Run PayPilot Server

Helper script to start the intent endpoint.
"""

import uvicorn
from paypilot.config import settings


def main():
    """Start the intent endpoint."""
    print("=" * 60)
    print("  PayPilot Intent Endpoint")
    print("  Starting FastAPI server...")
    print("=" * 60)
    print(f"\n🌐 POST http://{settings.host}:{settings.port}/ai-chat")
    print(f"📊 API docs available at: http://{settings.host}:{settings.port}/docs")
    if not settings.gemini_api_key:
        print("\n⚠️  GEMINI_API_KEY is not set; /ai-chat will answer 500")
    print("\nPress Ctrl+C to stop\n")

    uvicorn.run(
        "paypilot.server:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
