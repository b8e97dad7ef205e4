from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging
import os

from diagnostic_endpoint import add_diagnostic_routes_to_app, ENGINE_VERSION

# Load environment variables
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Obesity Diagnostic Engine")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_diagnostic_routes_to_app(app)


@app.get("/")
async def root():
    return {
        "service": "Obesity Diagnostic Engine",
        "version": ENGINE_VERSION,
        "status": "active",
        "endpoints": {
            "evaluate": "/diagnostics/evaluate",
            "report": "/diagnostics/report",
            "adiposity": "/diagnostics/adiposity",
            "criteria": "/diagnostics/criteria"
        }
    }


if __name__ == "__main__":
    import uvicorn

    print("\n" + "=" * 70)
    print("🏥 Obesity Diagnostic Engine")
    print("=" * 70)
    print(f"📍 Server: http://localhost:{PORT}")
    print(f"📚 Docs:   http://localhost:{PORT}/docs")
    print("=" * 70 + "\n")

    uvicorn.run(app, host=HOST, port=PORT)
