"""Unit tests for ClipPreprocessor and BatchPreprocessor"""

import asyncio
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from core.errors import DownloadError, TranscodeError
from core.preprocess import BatchPreprocessor, ClipPreprocessor, cleanup_clips
from tests.mocks.fixtures import FakeFetcher, fake_ffmpeg, make_clip_config, transcode_error


@pytest.fixture
def preprocessor(tmp_path, fetcher):
    return ClipPreprocessor(fetcher, temp_dir=str(tmp_path), ffmpeg_path="ffmpeg")


def leftover_files(directory: Path):
    return sorted(p.name for p in directory.iterdir())


class TestBuildCommand:
    """Test FFmpeg argument construction"""

    def test_trim_filters_and_codecs(self, preprocessor):
        config = make_clip_config(trim_start=2.0, duration=5.0, speed=2.0)
        cmd = preprocessor.build_command(config, "raw.mp4", "out.mp4")

        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-ss") + 1] == "2.0"
        assert cmd[cmd.index("-t") + 1] == "5.0"
        assert cmd[cmd.index("-i") + 1] == "raw.mp4"
        assert "setpts=PTS*0.5000" in cmd[cmd.index("-vf") + 1]
        assert cmd[cmd.index("-af") + 1] == "atempo=2.0000"
        assert cmd[cmd.index("-crf") + 1] == "20"
        assert cmd[-1] == "out.mp4"

    def test_empty_filters_are_omitted(self, preprocessor):
        cmd = preprocessor.build_command(make_clip_config(sharpen=False), "raw.mp4", "out.mp4")
        assert "-vf" not in cmd
        assert "-af" not in cmd


class TestClipPreprocessor:
    """Test single clip pre-processing"""

    @pytest.mark.asyncio
    async def test_success_keeps_only_processed_file(self, preprocessor, tmp_path):
        run = fake_ffmpeg(size=4096)
        with patch("core.preprocess.run_ffmpeg", run):
            clip = await preprocessor.preprocess(make_clip_config(duration=4.0, speed=2.0))

        assert clip.source_id == "clip_a"
        assert clip.effective_duration == 2.0
        assert clip.speed == 2.0
        assert clip.size_bytes == 4096
        assert os.path.isabs(clip.local_path)
        assert os.path.exists(clip.local_path)
        assert leftover_files(tmp_path) == [f"processed_{clip.processed_id}.mp4"]
        assert len(run.calls) == 1

    @pytest.mark.asyncio
    async def test_slow_motion_lengthens_clip(self, preprocessor):
        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg()):
            clip = await preprocessor.preprocess(make_clip_config(duration=4.0, speed=0.5))
        assert clip.effective_duration == 8.0

    @pytest.mark.asyncio
    async def test_processed_ids_are_unique(self, preprocessor):
        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg()):
            first = await preprocessor.preprocess(make_clip_config())
            second = await preprocessor.preprocess(make_clip_config())
        assert first.processed_id != second.processed_id
        assert first.local_path != second.local_path

    @pytest.mark.asyncio
    async def test_download_failure(self, tmp_path):
        fetcher = FakeFetcher(fail_ids=["clip_a"], error=ConnectionResetError("reset by peer"))
        preprocessor = ClipPreprocessor(fetcher, temp_dir=str(tmp_path), ffmpeg_path="ffmpeg")
        run = fake_ffmpeg()

        with patch("core.preprocess.run_ffmpeg", run):
            with pytest.raises(DownloadError, match="clip_a"):
                await preprocessor.preprocess(make_clip_config())

        assert run.calls == []
        assert leftover_files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_download_error_passes_through(self, tmp_path):
        fetcher = FakeFetcher(fail_ids=["clip_a"])
        preprocessor = ClipPreprocessor(fetcher, temp_dir=str(tmp_path), ffmpeg_path="ffmpeg")

        with pytest.raises(DownloadError, match="HTTP 404"):
            await preprocessor.preprocess(make_clip_config())

    @pytest.mark.asyncio
    async def test_ffmpeg_failure_removes_partial_output(self, preprocessor, tmp_path):
        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg(error=transcode_error())):
            with pytest.raises(TranscodeError) as exc_info:
                await preprocessor.preprocess(make_clip_config(filename="goal.mp4"))

        assert "FFmpeg pre-processing failed for goal.mp4" in str(exc_info.value)
        assert exc_info.value.returncode == 1
        assert leftover_files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_missing_output_is_an_error(self, preprocessor, tmp_path):
        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg(write=False)):
            with pytest.raises(TranscodeError, match="not created"):
                await preprocessor.preprocess(make_clip_config())
        assert leftover_files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_cancellation_removes_files(self, preprocessor, tmp_path):
        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg(error=asyncio.CancelledError())):
            with pytest.raises(asyncio.CancelledError):
                await preprocessor.preprocess(make_clip_config())
        assert leftover_files(tmp_path) == []


class TestBatchPreprocessor:
    """Test sequential batch pre-processing and cleanup"""

    @pytest.mark.asyncio
    async def test_preserves_order(self, preprocessor, fetcher):
        batch = BatchPreprocessor(preprocessor)
        configs = [make_clip_config(f"clip_{i}") for i in range(3)]

        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg()):
            clips = await batch.preprocess_all(configs)

        assert [c.source_id for c in clips] == ["clip_0", "clip_1", "clip_2"]
        assert fetcher.fetched == ["clip_0", "clip_1", "clip_2"]

    @pytest.mark.asyncio
    async def test_failure_removes_earlier_clips(self, tmp_path):
        fetcher = FakeFetcher(fail_ids=["clip_2"])
        batch = BatchPreprocessor(ClipPreprocessor(fetcher, temp_dir=str(tmp_path), ffmpeg_path="ffmpeg"))
        configs = [make_clip_config(f"clip_{i}") for i in range(4)]

        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg()):
            with pytest.raises(DownloadError, match="clip_2"):
                await batch.preprocess_all(configs)

        assert fetcher.fetched == ["clip_0", "clip_1"]
        assert leftover_files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_batches_never_overlap(self, preprocessor):
        batch = BatchPreprocessor(preprocessor)
        active = 0
        peak = 0

        async def tracking_run(cmd, timeout):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            Path(cmd[-1]).write_bytes(b"\x00")
            active -= 1
            return ""

        with patch("core.preprocess.run_ffmpeg", tracking_run):
            first, second = await asyncio.gather(
                batch.preprocess_all([make_clip_config("a1"), make_clip_config("a2")]),
                batch.preprocess_all([make_clip_config("b1"), make_clip_config("b2")]),
            )

        assert peak == 1
        assert len(first) == len(second) == 2

    @pytest.mark.asyncio
    async def test_cleanup_is_idempotent(self, preprocessor, tmp_path):
        with patch("core.preprocess.run_ffmpeg", fake_ffmpeg()):
            clips = await BatchPreprocessor(preprocessor).preprocess_all(
                [make_clip_config("x"), make_clip_config("y")]
            )

        assert BatchPreprocessor.cleanup(clips) == []
        assert leftover_files(tmp_path) == []
        assert cleanup_clips(clips) == []
