"""
ProductionOrchestrator - drives the pipeline state machine.

Analysis phase:    IDLE → ANALYZING → STORYBOARDING → IDLE (ready)
Production phase:  IDLE (ready) → RENDERING → ASSEMBLING → COMPLETED
Any active state may fall to FAILED; FAILED is terminal for that run.

Scenes render one at a time in storyboard order. Every transition and every
finished clip is published to subscribers as a ProductionSnapshot.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..errors import InvalidStateError, ProductionCancelledError
from .analyze import analyze_source
from .assemble import Assembler, FirstClipAssembler
from .models import (
    ACTIVE_STATUSES,
    MasterArtifact,
    PipelineStatus,
    ProductionSnapshot,
    ReasoningModel,
    RenderedClip,
    SceneField,
    Storyboard,
)
from .render import render_scene
from .session import SessionStore
from .storyboard import generate_storyboard

logger = logging.getLogger(__name__)

Observer = Callable[[ProductionSnapshot], None]
RenderFn = Callable[..., Awaitable[RenderedClip]]

MSG_ANALYZING = "SCRAPING PRODUCT DATA..."
MSG_STORYBOARDING = "AI CREATIVE DIRECTOR IS THINKING..."
MSG_RENDERING = "RENDERING SCENE {index}/{total}..."
MSG_ASSEMBLING = "AUTO-EDITING MASTER SEQUENCE..."


class ProductionOrchestrator:
    """
    Single-session pipeline driver.

    Usage:
        orchestrator = ProductionOrchestrator(session)
        orchestrator.subscribe(print)

        await orchestrator.start("https://example.com/widget")   # → IDLE (ready)
        orchestrator.update_scene(0, "transition", "fade")
        await orchestrator.execute()                              # → COMPLETED
    """

    def __init__(
        self,
        session: SessionStore,
        assembler: Optional[Assembler] = None,
        render: Optional[RenderFn] = None,
    ):
        self.session = session
        self.assembler = assembler or FirstClipAssembler()
        self.render = render

        self._status = PipelineStatus.IDLE
        self._message = ""
        self._error: Optional[str] = None
        self._configuration_required = False
        self._clips: list[RenderedClip] = []
        self._master: Optional[MasterArtifact] = None

        self._observers: list[Observer] = []
        self._cancel_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    # ── Observation ──────────────────────────────────────────────────────────

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        if self._task is not None and not self._task.done():
            return True
        return self._status in ACTIVE_STATUSES

    def snapshot(self) -> ProductionSnapshot:
        storyboard = self.session.storyboard
        return ProductionSnapshot(
            status=self._status,
            message=self._message,
            ready=self._status == PipelineStatus.IDLE and storyboard is not None,
            configuration_required=self._configuration_required,
            clips=list(self._clips),
            total_scenes=len(storyboard.scenes) if storyboard else 0,
            master=self._master,
            error=self._error,
        )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Production observer raised")

    def _transition(self, status: PipelineStatus, message: str = "") -> None:
        self._status = status
        self._message = message
        logger.info(f"[{status.value}] {message}")
        self._publish()

    def _fail(self, error: Exception) -> None:
        logger.error(f"Production failed during {self._status.value}: {error}", exc_info=True)
        self._error = str(error)
        self._transition(PipelineStatus.FAILED, str(error))

    # ── Analysis phase ───────────────────────────────────────────────────────

    def _guard_start(self) -> bool:
        """True if analysis may begin; False if configuration is needed first."""
        if self.is_active:
            raise InvalidStateError(f"Cannot start while {self._status.value}")
        if not self.session.credentials.gemini:
            logger.warning("Start rejected: no reasoning API key configured")
            self._configuration_required = True
            self._publish()
            return False
        self._configuration_required = False
        return True

    async def start(self, source_url: str) -> ProductionSnapshot:
        """
        Analyze the product and generate a storyboard.

        Without a reasoning key nothing is called: the status stays IDLE and
        the snapshot asks for configuration.
        """
        if not self._guard_start():
            return self.snapshot()
        await self._run_analysis(source_url)
        return self.snapshot()

    async def _run_analysis(self, source_url: str) -> None:
        session = self.session
        credentials = session.credentials

        session.reset_creative()
        self._clips = []
        self._master = None
        self._error = None

        try:
            self._transition(PipelineStatus.ANALYZING, MSG_ANALYZING)
            session.product = await analyze_source(
                source_url,
                credentials,
                reference_image=session.reference_image,
                model=ReasoningModel.GEMINI_3_FLASH,
            )

            self._transition(PipelineStatus.STORYBOARDING, MSG_STORYBOARDING)
            session.storyboard = await generate_storyboard(
                session.product,
                credentials,
                model=session.reasoning_model,
            )

            self._transition(PipelineStatus.IDLE, "")
        except Exception as e:
            self._fail(e)

    # ── Editing ──────────────────────────────────────────────────────────────

    def update_scene(self, index: int, field: SceneField, value: str) -> Storyboard:
        """Typed scene edit; refused while a phase is running."""
        if self.is_active:
            raise InvalidStateError(f"Scenes cannot be edited while {self._status.value}")
        storyboard = self.session.update_scene(index, field, value)
        self._publish()
        return storyboard

    # ── Production phase ─────────────────────────────────────────────────────

    def _guard_execute(self) -> None:
        if self.is_active:
            raise InvalidStateError(f"Cannot execute while {self._status.value}")
        if self.session.storyboard is None or self.session.product is None:
            raise InvalidStateError("Generate a storyboard before starting production")

    async def execute(self) -> ProductionSnapshot:
        """Render every scene in order, then assemble the master."""
        self._guard_execute()
        await self._run_production()
        return self.snapshot()

    async def _run_production(self) -> None:
        session = self.session
        storyboard = session.storyboard
        product = session.product
        model = session.video_model
        aspect_ratio = session.aspect_ratio
        resolution = session.resolution
        credentials = session.lock()
        render = self.render or render_scene

        self._cancel_event = asyncio.Event()
        self._clips = []
        self._master = None
        self._error = None
        total = len(storyboard.scenes)

        try:
            for index, scene in enumerate(storyboard.scenes):
                self._check_cancelled()
                self._transition(
                    PipelineStatus.RENDERING,
                    MSG_RENDERING.format(index=index + 1, total=total),
                )
                clip = await render(
                    scene,
                    storyboard.character_seed_description,
                    product,
                    credentials,
                    model=model,
                    global_style=storyboard.global_style,
                    aspect_ratio=aspect_ratio,
                    resolution=resolution,
                    cancel_event=self._cancel_event,
                )
                self._clips = [*self._clips, clip]
                self._publish()

            self._check_cancelled()
            self._transition(PipelineStatus.ASSEMBLING, MSG_ASSEMBLING)
            self._master = await self.assembler.assemble(list(self._clips))
            self._transition(PipelineStatus.COMPLETED, "")
        except Exception as e:
            self._fail(e)
        finally:
            session.unlock()
            self._cancel_event = None

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise ProductionCancelledError(f"Production cancelled after {len(self._clips)} clips")

    def cancel(self) -> bool:
        """Ask a running render to stop at its next checkpoint. Returns False if nothing is rendering."""
        if self._status != PipelineStatus.RENDERING or self._cancel_event is None:
            return False
        logger.info("Cancellation requested")
        self._cancel_event.set()
        return True

    # ── Background wrappers ──────────────────────────────────────────────────

    def start_background(self, source_url: str) -> ProductionSnapshot:
        """Guard synchronously, then run the analysis phase as a task."""
        if self._guard_start():
            self._task = asyncio.create_task(self._run_analysis(source_url))
        return self.snapshot()

    def execute_background(self) -> ProductionSnapshot:
        """Guard synchronously, then run the production phase as a task."""
        self._guard_execute()
        self._task = asyncio.create_task(self._run_production())
        return self.snapshot()
