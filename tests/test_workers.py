"""Tests for the background workers.

run() is invoked directly on the test thread so signal emission is
synchronous; sleeping is patched out.
"""

import sys
from unittest.mock import MagicMock

from PyQt6.QtCore import QCoreApplication

from lumina.core.render_job import RenderJobController
from lumina.core.spatial_math import derive
from lumina.models.studio import Position
from lumina.services.replicate_client import ReplicateClient
from lumina.workers.director_worker import DirectorWorker
from lumina.workers.render_worker import RenderWorker
from fakes import make_response, prediction

_app = QCoreApplication.instance() or QCoreApplication(sys.argv)

IMAGE_URL = "https://example/img.png"
CAMERA = Position(0.0, 150.0, 0.0)
LIGHT = Position(100.0, -100.0, 20.0)


def _render_worker(config, session):
    controller = RenderJobController(config, client=ReplicateClient(config, session=session))
    worker = RenderWorker(controller)
    worker._sleep = lambda _s: None
    spies = {name: MagicMock() for name in ("status_changed", "result_ready", "error_occurred")}
    for name, spy in spies.items():
        getattr(worker, name).connect(spy)
    return worker, controller, spies


class TestRenderWorker:

    def setup_method(self):
        self.descriptor = derive(CAMERA, LIGHT)

    def test_success_emits_url(self, config, session):
        worker, _, spies = _render_worker(config, session)
        session.post.return_value = make_response(201, prediction("starting"))
        session.get.side_effect = [
            make_response(200, prediction("processing")),
            make_response(200, prediction("succeeded", output=[IMAGE_URL])),
        ]
        worker.setup(self.descriptor)
        worker.run()

        spies["result_ready"].assert_called_once_with(IMAGE_URL)
        spies["error_occurred"].assert_not_called()
        statuses = [c.args[0] for c in spies["status_changed"].call_args_list]
        assert statuses == ["polling", "polling", "succeeded"]

    def test_failure_emits_error(self, config, session):
        worker, _, spies = _render_worker(config, session)
        session.post.return_value = make_response(201, prediction("starting"))
        session.get.return_value = make_response(200, prediction("failed", error="model crashed"))
        worker.setup(self.descriptor)
        worker.run()

        spies["error_occurred"].assert_called_once_with("Prediction failed: model crashed")
        spies["result_ready"].assert_not_called()

    def test_missing_descriptor(self, config, session):
        worker, _, spies = _render_worker(config, session)
        worker.run()
        spies["error_occurred"].assert_called_once()
        session.post.assert_not_called()

    def test_cancel_mid_poll_is_silent(self, config, session):
        worker, controller, spies = _render_worker(config, session)
        session.post.return_value = make_response(201, prediction("starting"))
        session.get.return_value = make_response(200, prediction("processing"))
        worker._sleep = lambda _s: worker.cancel()
        worker.setup(self.descriptor)
        worker.run()

        assert controller.status.value == "canceled"
        spies["result_ready"].assert_not_called()
        spies["error_occurred"].assert_not_called()
        session.get.assert_not_called()

    def test_cancel_only_flags_until_worker_thread_acts(self, config, session):
        worker, controller, _ = _render_worker(config, session)
        session.post.return_value = make_response(201, prediction("starting"))
        job = controller.submit(self.descriptor)
        posts_before = session.post.call_count

        worker.cancel()

        # No status change and no upstream request on the calling thread
        assert job.status.value == "polling"
        assert session.post.call_count == posts_before

    def test_upstream_cancel_runs_on_worker_thread(self, config, session):
        worker, controller, _ = _render_worker(config, session)
        session.post.return_value = make_response(201, prediction("starting"))
        worker._sleep = lambda _s: worker.cancel()
        worker.setup(self.descriptor)
        worker.run()

        assert controller.status.value == "canceled"
        assert session.post.call_args.args[0].endswith("/cancel")

    def test_cancel_does_not_touch_another_workers_job(self, config, session):
        worker, controller, spies = _render_worker(config, session)
        session.post.return_value = make_response(201, prediction("starting"))

        def superseded_then_cancelled(_s):
            controller.submit(self.descriptor)
            worker.cancel()

        worker._sleep = superseded_then_cancelled
        worker.setup(self.descriptor)
        worker.run()

        assert controller.job.id != worker.job_id
        assert controller.status.value == "polling"
        spies["error_occurred"].assert_not_called()

    def test_replaced_job_is_silent(self, config, session):
        worker, controller, spies = _render_worker(config, session)
        session.post.return_value = make_response(201, prediction("starting"))
        session.get.return_value = make_response(200, prediction("processing"))
        # Another submission supersedes this worker's job while it sleeps
        worker._sleep = lambda _s: controller.submit(self.descriptor)
        worker.setup(self.descriptor)
        worker.run()

        assert controller.job.id != worker.job_id
        spies["result_ready"].assert_not_called()
        spies["error_occurred"].assert_not_called()


class TestDirectorWorker:

    def _worker(self, client):
        worker = DirectorWorker(client)
        result_spy, error_spy = MagicMock(), MagicMock()
        worker.result_ready.connect(result_spy)
        worker.error_occurred.connect(error_spy)
        return worker, result_spy, error_spy

    def test_result(self):
        client = MagicMock()
        new_cam, new_light = Position(0.0, 250.0, -80.0), Position(0.0, -120.0, 30.0)
        client.direct.return_value = (new_cam, new_light)
        worker, result_spy, error_spy = self._worker(client)
        worker.setup("hero shot", CAMERA, LIGHT)
        worker.run()
        client.direct.assert_called_once_with("hero shot", CAMERA, LIGHT)
        result_spy.assert_called_once_with(new_cam, new_light)
        error_spy.assert_not_called()

    def test_error(self):
        client = MagicMock()
        client.direct.side_effect = RuntimeError("quota exceeded")
        worker, result_spy, error_spy = self._worker(client)
        worker.setup("x", CAMERA, LIGHT)
        worker.run()
        error_spy.assert_called_once_with("quota exceeded")
        result_spy.assert_not_called()

    def test_cancelled_result_dropped(self):
        client = MagicMock()
        worker, result_spy, error_spy = self._worker(client)

        def slow_direct(*_args):
            worker.cancel()
            return CAMERA, LIGHT

        client.direct.side_effect = slow_direct
        worker.setup("x", CAMERA, LIGHT)
        worker.run()
        result_spy.assert_not_called()
        error_spy.assert_not_called()

    def test_not_configured(self):
        client = MagicMock()
        worker, _, error_spy = self._worker(client)
        worker.run()
        error_spy.assert_called_once()
        client.direct.assert_not_called()
