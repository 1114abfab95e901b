"""Tests for the render service boundary."""

import threading

import pytest


class StaticBackend:
    """Backend returning a fixed list of image URLs."""

    def __init__(self, image_urls=None, error=None):
        self.image_urls = image_urls or []
        self.error = error
        self.requests = []

    def render(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.image_urls


class BlockingBackend:
    """Backend that waits for a release signal before returning."""

    def __init__(self):
        self.release = threading.Event()

    def render(self, request):
        self.release.wait(timeout=5)
        return ["https://renders.example/out.png"]


class TestRenderClient:
    """Tests for submitting and resolving render jobs."""

    def test_completed_job(self):
        from roomscan.render import RenderClient, RenderStatus

        backend = StaticBackend(["https://renders.example/1.png", "https://renders.example/2.png"])

        with RenderClient(backend) as client:
            job = client.submit(["a.jpg", "b.jpg"], "exterior")
            result = job.result(timeout=5)

        assert result.status is RenderStatus.COMPLETED
        assert result.image_urls == ["https://renders.example/1.png", "https://renders.example/2.png"]
        assert result.reason is None
        assert job.done

    def test_request_fields(self):
        """Render type maps to a process type and a prompt."""
        from roomscan.render import RenderClient

        backend = StaticBackend(["out.png"])

        with RenderClient(backend) as client:
            job = client.submit(["a.jpg", "b.jpg", "c.jpg"], "exterior")
            job.result(timeout=5)

        request = backend.requests[0]
        assert request.media_urls == ["a.jpg", "b.jpg", "c.jpg"]
        assert request.process_type == "exterior-rendering"
        assert "3 reference photos" in request.prompt

    @pytest.mark.parametrize("render_type,process_type", [
        ("exterior", "exterior-rendering"),
        ("design-ideas", "design-integration"),
        ("decks", "deck-rendering"),
    ])
    def test_process_types(self, render_type, process_type):
        from roomscan.render import RenderClient

        with RenderClient(StaticBackend(["out.png"])) as client:
            job = client.submit(["a.jpg"], render_type)
            job.result(timeout=5)

        assert job.request.process_type == process_type
        assert job.request.prompt

    def test_empty_output_fails(self):
        from roomscan.render import RenderClient, RenderStatus

        with RenderClient(StaticBackend([])) as client:
            result = client.submit(["a.jpg"], "decks").result(timeout=5)

        assert result.status is RenderStatus.FAILED
        assert result.image_urls == []
        assert "no images" in result.reason

    def test_backend_error_fails(self):
        """Backend exceptions become a failed result, not a raised error."""
        from roomscan.render import RenderClient, RenderStatus

        backend = StaticBackend(error=RuntimeError("upstream timeout"))

        with RenderClient(backend) as client:
            result = client.submit(["a.jpg"], "design-ideas").result(timeout=5)

        assert result.status is RenderStatus.FAILED
        assert result.reason == "upstream timeout"

    def test_no_media_rejected(self):
        from roomscan.render import RenderClient, RenderError

        with RenderClient(StaticBackend(["out.png"])) as client:
            with pytest.raises(RenderError):
                client.submit([], "exterior")

    def test_unknown_render_type_rejected(self):
        from roomscan.render import RenderClient, RenderError

        with RenderClient(StaticBackend(["out.png"])) as client:
            with pytest.raises(RenderError, match="Unknown render type"):
                client.submit(["a.jpg"], "interior")

    def test_poll_while_processing(self):
        from roomscan.render import RenderClient, RenderStatus

        backend = BlockingBackend()

        with RenderClient(backend) as client:
            job = client.submit(["a.jpg"], "exterior")

            assert job.poll().status is RenderStatus.PROCESSING
            assert not job.done

            backend.release.set()
            job.result(timeout=5)

        assert job.poll().status is RenderStatus.COMPLETED


class TestRenderModels:
    """Tests for render request and result models."""

    def test_request_requires_media(self):
        from pydantic import ValidationError
        from roomscan.render import RenderRequest, RenderType

        with pytest.raises(ValidationError):
            RenderRequest(media_urls=[], render_type=RenderType.EXTERIOR, prompt="x")

    def test_result_constructors(self):
        from roomscan.render import RenderResult, RenderStatus

        assert RenderResult.pending().status is RenderStatus.PROCESSING
        assert RenderResult.completed(["a"]).image_urls == ["a"]
        assert RenderResult.failed("boom").reason == "boom"

    def test_build_prompt(self):
        from roomscan.render import RenderType, build_prompt

        assert "5 reference photos" in build_prompt(RenderType.EXTERIOR, 5)
        assert "deck" in build_prompt(RenderType.DECKS, 1)
