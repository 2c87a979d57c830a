"""Audio artifacts, WAV container helpers, and playback backends."""

from .artifact import AudioArtifact, extension_for_mime
from .player import AudioPlayer, PlaybackHandle, SubprocessAudioPlayer
from .wav import DEFAULT_PCM_SAMPLE_RATE, WAV_HEADER_SIZE, parse_sample_rate, pcm_to_wav

__all__ = [
    "AudioArtifact",
    "AudioPlayer",
    "DEFAULT_PCM_SAMPLE_RATE",
    "PlaybackHandle",
    "SubprocessAudioPlayer",
    "WAV_HEADER_SIZE",
    "extension_for_mime",
    "parse_sample_rate",
    "pcm_to_wav",
]
