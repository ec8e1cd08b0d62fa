import uuid

import pytest

from app.errors import JobAlreadyPending
from app.jobs.models import JobRecord, JobStatus


def _job(stores, job_id):
    return JobRecord.from_row(stores.jobs.select_by_id(job_id))


def _draft(stores, model_id, **fields):
    row = {"model_id": model_id, "name": "clip", "text_content": "hello", "status": "draft"}
    row.update(fields)
    return stores.jobs.insert(row)


@pytest.mark.anyio
async def test_speech_is_synthesized_before_video(studio, stores, fake_remote, model_id, tts_root):
    job_id = _draft(stores, model_id)

    await studio.controller.synthesize(job_id)

    names = [name for name, _ in fake_remote.calls]
    assert names == ["tts.invoke", "face2face.submit"]

    invoke = fake_remote.calls_named("tts.invoke")[0]
    assert invoke["text"] == "hello"
    assert invoke["reference_audio"] == "ref.wav"
    assert invoke["reference_text"] == "reference text"

    job = _job(stores, job_id)
    param = fake_remote.calls_named("face2face.submit")[0]
    assert job.status == JobStatus.PENDING
    assert job.code == param["code"]
    assert uuid.UUID(job.code)
    assert job.audio_path.is_remote and job.audio_path.category == "audio"
    assert param["audio_url"] == str(job.audio_path)
    assert param["video_url"] == "model/presenter.mp4"
    assert (param["chaofen"], param["watermark_switch"], param["pn"]) == (0, 0, 1)
    assert (tts_root / "audio" / job.audio_path.name).exists()


@pytest.mark.anyio
async def test_each_submission_gets_a_fresh_code(studio, stores, model_id):
    first = _draft(stores, model_id)
    second = _draft(stores, model_id)

    await studio.controller.synthesize(first)
    await studio.controller.synthesize(second)

    assert _job(stores, first).code != _job(stores, second).code


@pytest.mark.anyio
async def test_explicit_audio_path_skips_speech(studio, stores, fake_remote, model_id):
    job_id = _draft(stores, model_id, audio_path="temp/mine.wav")

    await studio.controller.synthesize(job_id)

    assert fake_remote.calls_named("tts.invoke") == []
    assert fake_remote.calls_named("face2face.submit")[0]["audio_url"] == "temp/mine.wav"
    assert _job(stores, job_id).status == JobStatus.PENDING


@pytest.mark.anyio
async def test_job_voice_overrides_model_voice(studio, stores, fake_remote, model_id):
    other_voice = stores.voices.insert({"asr_format_audio_url": "other.wav", "reference_audio_text": "other"})
    job_id = _draft(stores, model_id, voice_id=other_voice)

    await studio.controller.synthesize(job_id)

    assert fake_remote.calls_named("tts.invoke")[0]["reference_audio"] == "other.wav"


@pytest.mark.anyio
async def test_rejected_submission_fails_with_remote_message(studio, stores, fake_remote, model_id):
    fake_remote.submit_response = {"code": 10002, "msg": "GPU busy"}
    job_id = _draft(stores, model_id)

    await studio.controller.synthesize(job_id)

    job = _job(stores, job_id)
    assert job.status == JobStatus.FAILED
    assert job.message == "GPU busy"
    assert job.code == fake_remote.calls_named("face2face.submit")[0]["code"]


@pytest.mark.anyio
async def test_missing_model_marks_job_failed(studio, stores):
    job_id = _draft(stores, 999)

    assert await studio.controller.synthesize(job_id) == job_id

    job = _job(stores, job_id)
    assert job.status == JobStatus.FAILED
    assert "Model with ID 999 not found" in job.message


@pytest.mark.anyio
async def test_missing_voice_marks_job_failed(studio, stores):
    model_id = stores.models.insert({"name": "mute", "video_path": "model/m.mp4", "voice_id": None})
    job_id = _draft(stores, model_id)

    await studio.controller.synthesize(job_id)

    assert _job(stores, job_id).status == JobStatus.FAILED


@pytest.mark.anyio
async def test_transport_failure_marks_job_failed(studio, stores, fake_remote, model_id):
    fake_remote.submit_http_status = 502
    job_id = _draft(stores, model_id)

    await studio.controller.synthesize(job_id)

    job = _job(stores, job_id)
    assert job.status == JobStatus.FAILED
    assert "502" in job.message


@pytest.mark.anyio
async def test_development_mode_uses_fixed_assets(studio, stores, fake_remote, model_id, settings):
    settings.app_env = "development"
    job_id = _draft(stores, model_id, audio_path="temp/mine.wav")

    await studio.controller.synthesize(job_id)

    param = fake_remote.calls_named("face2face.submit")[0]
    assert (param["audio_url"], param["video_url"]) == ("test.wav", "test.mp4")


def test_submit_queues_the_job(studio, stores, model_id):
    job_id = _draft(stores, model_id)
    studio.controller.submit(job_id)
    assert _job(stores, job_id).status == JobStatus.WAITING


def test_submit_refuses_a_running_job(studio, stores, model_id):
    job_id = _draft(stores, model_id, status="pending", code="first")

    with pytest.raises(JobAlreadyPending):
        studio.controller.submit(job_id)

    job = _job(stores, job_id)
    assert job.status == JobStatus.PENDING
    assert job.code == "first"


@pytest.mark.parametrize("status", ["draft", "success", "failed"])
def test_submit_requeues_finished_jobs(studio, stores, model_id, status):
    job_id = _draft(stores, model_id, status=status)
    studio.controller.submit(job_id)
    assert _job(stores, job_id).status == JobStatus.WAITING


@pytest.mark.anyio
async def test_resubmission_replaces_previous_code(studio, stores, fake_remote, model_id):
    job_id = _draft(stores, model_id, status="failed", code="old-run", param={"code": "old-run"})

    await studio.controller.synthesize(job_id)

    job = _job(stores, job_id)
    assert job.code == fake_remote.calls_named("face2face.submit")[0]["code"]
    assert job.code != "old-run"
    assert job.param["code"] == job.code
