"""
Transcoding engine module for space_saver.

This module handles the external encode step:
- Locating the ffmpeg executable
- Scratch-directory output naming
- FFmpeg command building
- Running the encoder with cancellation and guaranteed process cleanup
"""

import shlex
import shutil
import subprocess
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from space_saver.utils.logging import get_logger, format_duration
from ..conversion_config import ConversionConfig, TARGET_ENCODER
from ..exceptions import ConversionCancelled
from ..library.collaborators import EncoderLocator
from ..system.cancellation import CancellationToken
from ..system.system_utils import remove_file

logger = get_logger("transcoding_engine")

OUTPUT_EXTENSION = ".mkv"
STDERR_TAIL_LINES = 20


@dataclass
class EncodeResult:
    """Outcome of one encoder invocation."""
    ok: bool
    exit_code: int
    stderr_text: str = ""

    def stderr_tail(self, lines: int = STDERR_TAIL_LINES) -> str:
        return "\n".join(self.stderr_text.strip().splitlines()[-lines:])


class FfmpegLocator:
    """Encoder location provider: a configured path, else ffmpeg on PATH."""

    def __init__(self, configured_path: Optional[str] = None):
        self.configured_path = configured_path

    @property
    def encoder_path(self) -> Optional[str]:
        if self.configured_path:
            return self.configured_path
        return shutil.which("ffmpeg")


def new_output_path(scratch_dir: Path) -> Path:
    """A fresh, collision-free output path inside ``scratch_dir`` (created if absent)."""
    scratch_dir = Path(scratch_dir)
    scratch_dir.mkdir(parents=True, exist_ok=True)
    return scratch_dir / f"{uuid.uuid4().hex}{OUTPUT_EXTENSION}"


def build_encode_cmd(encoder_path: str, input_file: Path, output_file: Path,
                     config: ConversionConfig) -> List[str]:
    """Build the FFmpeg command: HEVC video, everything else copied, fast-start Matroska output."""
    cmd = [str(encoder_path), "-hide_banner", "-nostdin", "-y"]

    # Input
    cmd.extend(["-i", str(input_file)])

    # Primary video stream plus all audio and subtitle tracks
    cmd.extend(["-map", "0:v:0", "-map", "0:a?", "-map", "0:s?"])

    # Video encoding
    cmd.extend(["-c:v", TARGET_ENCODER,
                "-preset", config.preset.value,
                "-crf", str(config.effective_crf)])

    # Audio and subtitle copy
    cmd.extend(["-c:a", "copy", "-c:s", "copy"])

    # Metadata up front for fast-start playback
    cmd.extend(["-movflags", "+faststart"])

    # Output
    cmd.append(str(output_file))
    return cmd


class EncodeInvoker:
    """Runs one ffmpeg encode per call. The only component that spawns encoders."""

    def __init__(self, locator: EncoderLocator, poll_interval: float = 0.5):
        self.locator = locator
        self.poll_interval = poll_interval

    def resolve_encoder(self) -> Optional[str]:
        """The encoder executable if it exists on disk, else None."""
        path = self.locator.encoder_path
        if not path or not Path(path).is_file():
            return None
        return str(path)

    def encode(self, input_file: Path, output_file: Path, config: ConversionConfig,
               cancel: Optional[CancellationToken] = None) -> EncodeResult:
        """
        Encode ``input_file`` into ``output_file``.

        Encoder problems are reported through the returned EncodeResult; only
        cancellation raises (ConversionCancelled), after the process is killed
        and the partial output removed.
        """
        input_file = Path(input_file)
        output_file = Path(output_file)
        if output_file.resolve() == input_file.resolve():
            raise ValueError(f"Refusing to encode {input_file} over itself")

        encoder = self.resolve_encoder()
        if encoder is None:
            message = f"FFmpeg not found at: {self.locator.encoder_path}"
            logger.error(message)
            return EncodeResult(ok=False, exit_code=-1, stderr_text=message)

        scratch_dir = Path(config.scratch_dir)
        scratch_dir.mkdir(parents=True, exist_ok=True)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        cmd = build_encode_cmd(encoder, input_file, output_file, config)
        logger.cmd(" ".join(shlex.quote(c) for c in cmd))
        logger.encoder(f"{input_file.name}: {TARGET_ENCODER} preset={config.preset.value} "
                       f"crf={config.effective_crf}")

        start = time.time()
        try:
            exit_code, stderr_text = self._run(cmd, scratch_dir, cancel)
        except ConversionCancelled:
            remove_file(output_file, "cancelled")
            raise
        except OSError as e:
            logger.error(f"Could not start encoder for {input_file.name}: {e}")
            remove_file(output_file, "encoder did not start")
            return EncodeResult(ok=False, exit_code=-1, stderr_text=str(e))

        result = EncodeResult(ok=exit_code == 0 and output_file.exists(),
                              exit_code=exit_code, stderr_text=stderr_text)
        if result.ok:
            logger.debug(f"Encoded {input_file.name} in {format_duration(time.time() - start)}")
            return result

        if exit_code != 0:
            logger.error(f"FFmpeg conversion failed with exit code {exit_code} for {input_file.name}")
        else:
            logger.error(f"Output file not created: {output_file}")
        if result.stderr_text:
            logger.error(result.stderr_tail())
        remove_file(output_file, "encode failed")
        return result

    def _run(self, cmd: List[str], cwd: Path, cancel: Optional[CancellationToken]):
        """Run ``cmd`` draining stderr, polling ``cancel`` between waits."""
        with subprocess.Popen(cmd, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL,
                              stderr=subprocess.PIPE, text=True, errors="replace",
                              cwd=str(cwd)) as process:
            while True:
                try:
                    _, stderr = process.communicate(timeout=self.poll_interval)
                    return process.returncode, stderr or ""
                except subprocess.TimeoutExpired:
                    if cancel is not None and cancel.is_cancelled():
                        logger.warn("Cancellation requested, killing encoder")
                        process.kill()
                        process.communicate()
                        raise ConversionCancelled()
