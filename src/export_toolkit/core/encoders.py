"""Encoder parameter resolution: hardware, software and mastering profiles."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config.settings import EncodingConfig, FFmpegConfig
from .models import DEFAULT_BITRATE, Codec

LOG = logging.getLogger(__name__)

HARDWARE_LABEL = "HW accelerated"
SOFTWARE_LABEL = "Software"
MASTERING_LABEL = "Mastering"


@dataclass(frozen=True)
class EncoderProfile:
    """Concrete codec arguments for one export."""

    label: str
    video_args: tuple[str, ...]
    audio_args: tuple[str, ...]
    decode_args: tuple[str, ...] = ()
    container: str | None = None  # Forced output suffix, if any
    hardware: bool = False

    @property
    def args(self) -> list[str]:
        return [*self.video_args, *self.audio_args]


def resolve_encoder_args(
    codec: Codec | str,
    hardware_available: bool,
    bitrate: int | None = None,
    *,
    single_input: bool = False,
    settings: EncodingConfig | None = None,
    engine: FFmpegConfig | None = None,
) -> EncoderProfile:
    """
    Resolve codec, rate control and pixel format arguments.

    Args:
        codec: Requested codec family
        hardware_available: Result of this export's hardware encoder probe
        bitrate: Explicit video bitrate in bits per second, if any
        single_input: One file input, no filter graph: drop the realtime hint and
            decode on the hardware when encoding on it
        settings: Encoding settings (defaults when omitted)
        engine: Engine settings naming the hardware encoder/decoder

    Returns:
        The resolved profile; ``container`` is set when the codec dictates one.

    """
    codec = Codec.parse(codec)
    settings = settings or EncodingConfig()
    engine = engine or FFmpegConfig()

    if codec is Codec.MASTERING:
        # Fixed quality profile; bitrate and hardware do not apply
        return EncoderProfile(
            label=MASTERING_LABEL,
            video_args=("-c:v", settings.mastering_encoder, "-profile:v", str(settings.mastering_profile)),
            audio_args=("-c:a", settings.mastering_audio_codec),
            container=".mov",
        )

    audio_args = ("-c:a", "aac", "-b:a", settings.audio_bitrate)

    if hardware_available:
        # The hardware encoder has no quality-factor rate control, bitrate only
        video_bitrate = bitrate or settings.default_bitrate or DEFAULT_BITRATE
        video_args = ["-c:v", engine.hardware_encoder, "-b:v", str(video_bitrate)]
        if not single_input:
            video_args.extend(["-realtime", "1"])
        video_args.extend(["-pix_fmt", settings.pixel_format])
        return EncoderProfile(
            label=HARDWARE_LABEL,
            video_args=tuple(video_args),
            audio_args=audio_args,
            decode_args=("-hwaccel", engine.hardware_decoder) if single_input else (),
            hardware=True,
        )

    video_args = [
        "-c:v",
        settings.software_encoder,
        "-preset",
        settings.software_preset,
        "-tune",
        settings.software_tune,
        "-crf",
        str(settings.software_crf),
        "-pix_fmt",
        settings.pixel_format,
    ]
    if bitrate:
        video_args.extend(["-b:v", str(bitrate)])
    return EncoderProfile(label=SOFTWARE_LABEL, video_args=tuple(video_args), audio_args=audio_args)
