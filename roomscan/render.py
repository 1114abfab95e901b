"""
Render Service Boundary

Photo-based AI rendering runs in an external service. This module only
models the job: a request (media URLs + render type) goes to an
injected backend on a worker thread and comes back as a tagged result
(processing / completed / failed). No image content is inspected here.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Union
from pydantic import BaseModel, Field
from rich.console import Console

console = Console()


class RenderError(Exception):
    """Error while submitting a render job."""
    pass


class RenderType(str, Enum):
    EXTERIOR = "exterior"
    DESIGN_IDEAS = "design-ideas"
    DECKS = "decks"


class RenderStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


PROCESS_TYPES = {
    RenderType.EXTERIOR: "exterior-rendering",
    RenderType.DESIGN_IDEAS: "design-integration",
    RenderType.DECKS: "deck-rendering",
}

PROMPTS = {
    RenderType.EXTERIOR: (
        "Professional architectural rendering of a home exterior based on {count} reference photos. "
        "Create a photorealistic, high-quality exterior visualization with enhanced lighting, materials, "
        "and landscaping. Style: Modern architectural photography, golden hour lighting, 4K resolution."
    ),
    RenderType.DESIGN_IDEAS: (
        "Integrate these design elements and ideas into a cohesive interior space. Blend the uploaded "
        "design concepts with the existing room layout. Create a harmonious, stylish interior that "
        "incorporates the design themes from the reference images. Style: Interior design photography, "
        "professional lighting, realistic materials and textures."
    ),
    RenderType.DECKS: (
        "Add beautiful outdoor decks and patios to this house exterior. Based on the uploaded house "
        "photos, design and render custom deck additions that complement the architectural style. "
        "Include railings, outdoor furniture, and landscaping. Style: Professional architectural "
        "visualization, realistic materials, natural lighting."
    ),
}


class RenderRequest(BaseModel):
    media_urls: List[str] = Field(..., min_length=1)
    render_type: RenderType
    prompt: str

    @property
    def process_type(self) -> str:
        return PROCESS_TYPES[self.render_type]


class RenderResult(BaseModel):
    """Tagged outcome of a render job."""

    status: RenderStatus
    image_urls: List[str] = Field(default_factory=list)
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> "RenderResult":
        return cls(status=RenderStatus.PROCESSING)

    @classmethod
    def completed(cls, image_urls: Sequence[str]) -> "RenderResult":
        return cls(status=RenderStatus.COMPLETED, image_urls=list(image_urls))

    @classmethod
    def failed(cls, reason: str) -> "RenderResult":
        return cls(status=RenderStatus.FAILED, reason=reason)


class RenderBackend(Protocol):
    def render(self, request: RenderRequest) -> List[str]:
        """Run the rendering and return image URLs."""
        ...


def build_prompt(render_type: RenderType, media_count: int) -> str:
    return PROMPTS[render_type].format(count=media_count)


class RenderJob:
    """Handle on a submitted render request."""

    def __init__(self, request: RenderRequest, future: "Future[RenderResult]"):
        self.request = request
        self._future = future

    @property
    def done(self) -> bool:
        return self._future.done()

    def poll(self) -> RenderResult:
        """Current result without blocking; `processing` while running."""
        if not self._future.done():
            return RenderResult.pending()
        return self._future.result()

    def result(self, timeout: Optional[float] = None) -> RenderResult:
        """Block until the job finishes."""
        return self._future.result(timeout=timeout)


class RenderClient:
    """
    Submits render requests to a backend on a thread pool.

    Args:
        backend: The external renderer
        max_workers: Concurrent jobs
    """

    def __init__(self, backend: RenderBackend, max_workers: int = 2):
        self.backend = backend
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="render")

    def submit(
        self,
        media_urls: Sequence[str],
        render_type: Union[RenderType, str],
    ) -> RenderJob:
        """
        Queue a render job.

        Raises:
            RenderError: no media URLs, or an unknown render type
        """
        if not media_urls:
            raise RenderError("No media URLs provided")

        try:
            render_type = RenderType(render_type)
        except ValueError:
            valid = [t.value for t in RenderType]
            raise RenderError(f"Unknown render type: {render_type}. Must be one of {valid}")

        request = RenderRequest(
            media_urls=list(media_urls),
            render_type=render_type,
            prompt=build_prompt(render_type, len(media_urls)),
        )
        console.print(f"[blue]Submitting {request.process_type} job "
                      f"({len(request.media_urls)} images)[/blue]")
        return RenderJob(request, self._executor.submit(self._run, request))

    def _run(self, request: RenderRequest) -> RenderResult:
        try:
            image_urls = list(self.backend.render(request))
        except Exception as e:
            console.print(f"[red]{request.process_type} failed: {e}[/red]")
            return RenderResult.failed(str(e))

        if not image_urls:
            console.print(f"[yellow]{request.process_type} returned no images[/yellow]")
            return RenderResult.failed("Renderer returned no images")

        console.print(f"[green]{request.process_type} completed "
                      f"({len(image_urls)} images)[/green]")
        return RenderResult.completed(image_urls)

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "RenderClient":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
