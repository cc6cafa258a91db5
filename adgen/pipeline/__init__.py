"""
Product Video Production Pipeline

  Analysis   - Gemini Flash product research → Gemini Pro storyboard (10 scenes)
  Production - Veo 3.1 per-scene renders (sequential, polled) → master assembly
  Session    - credentials (persisted), model selection, editable storyboard
"""

from .models import PipelineStatus, ProductionSnapshot
from .orchestrator import ProductionOrchestrator
from .routes import production_router, settings_router
from .session import SessionStore

__all__ = [
    "ProductionOrchestrator",
    "SessionStore",
    "production_router",
    "settings_router",
    "PipelineStatus",
    "ProductionSnapshot",
]
