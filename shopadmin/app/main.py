#!/usr/bin/env python3
"""
Main FastAPI application for the shop admin back-office.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import authenticate
from .config import Config
from .controller import Controller
from .reporting import build_dashboard_summary
from ..data.database import create_tables, get_db
from ..schemas.io_models import (
    ActionRequest,
    ActionResult,
    ChatRequest,
    ChatResponse,
    DashboardSummary,
    LoginRequest,
    LoginResponse,
)
from ..utils.logger import get_logger

logger = get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    Config.debug_print()
    yield


# Initialize FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Shop Admin API",
    description="Admin back-office with a natural-language CRUD assistant",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize components
controller = Controller()


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, db: Session = Depends(get_db)):
    """
    Handle one chat turn: plan with the LLM, then run the planned action.
    """
    try:
        reply = controller.handle_turn(request.messages, request.user, db)
        return ChatResponse(reply=reply)
    except Exception as e:
        logger.exception("Error in /chat handler")
        raise HTTPException(status_code=500, detail=f"Server error: {str(e)}")


@app.post("/actions", response_model=ActionResult)
async def run_action(request: ActionRequest, db: Session = Depends(get_db)):
    """
    Run an action descriptor directly (used by the admin forms).
    """
    try:
        return controller.dispatcher.dispatch(request.action, request.user, db)
    except Exception as e:
        logger.exception("Error in /actions handler")
        raise HTTPException(status_code=500, detail=f"Server error: {str(e)}")


@app.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Demo-grade email/password check."""
    if not request.email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        user = authenticate(db, request.email, request.password)
    except SQLAlchemyError:
        logger.exception("Database error during login")
        raise HTTPException(status_code=500, detail="Database error")

    if user is None:
        raise HTTPException(status_code=401, detail="Wrong email or password")
    return LoginResponse(user=user)


@app.get("/dashboard", response_model=DashboardSummary)
async def dashboard(db: Session = Depends(get_db)):
    try:
        return build_dashboard_summary(db)
    except SQLAlchemyError as e:
        logger.exception("Error building dashboard summary")
        raise HTTPException(status_code=500, detail=f"Database error: {str(e)}")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
