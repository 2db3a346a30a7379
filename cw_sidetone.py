#!/usr/bin/env python3
"""
Sidetone - Local audio feedback while keying
The decoder itself never produces sound; the key reader drives this.
"""

import numpy as np

# Audio support (optional)
try:
    import pyaudio
    AUDIO_AVAILABLE = True
except ImportError:
    AUDIO_AVAILABLE = False


class SidetoneGenerator:
    """Sine tone with a short attack/release envelope to prevent clicks"""

    def __init__(self, frequency=600, sample_rate=48000, volume=0.3, rise_time=0.004):
        self.frequency = frequency
        self.sample_rate = sample_rate
        self.volume = volume
        self.rise_time = rise_time  # 4ms attack and release

        self.key_down = False
        self.phase = 0.0
        self.envelope = 0.0

        self.audio = None
        self.stream = None

    def open(self):
        """Open the output stream (raises if no audio device is usable)"""
        if not AUDIO_AVAILABLE:
            raise RuntimeError("pyaudio not available")

        self.audio = pyaudio.PyAudio()
        try:
            self.stream = self.audio.open(
                format=pyaudio.paFloat32,
                channels=1,
                rate=self.sample_rate,
                output=True,
                frames_per_buffer=128,  # Low latency (~2.6ms at 48kHz)
                stream_callback=self._audio_callback
            )
            self.stream.start_stream()
        except Exception:
            self.audio.terminate()
            self.audio = None
            self.stream = None
            raise

        print(f"[AUDIO] Sidetone enabled ({self.frequency} Hz)")
        return self

    def render(self, frame_count):
        """Generate the next block of samples (float32)"""
        steps = np.arange(1, frame_count + 1, dtype=np.float64)
        ramp = 1.0 / (self.rise_time * self.sample_rate)

        if self.key_down:
            envelope = np.minimum(self.envelope + ramp * steps, 1.0)
        else:
            envelope = np.maximum(self.envelope - ramp * steps, 0.0)
        self.envelope = float(envelope[-1])

        phase_increment = self.frequency / self.sample_rate
        phases = self.phase + phase_increment * (steps - 1)
        self.phase = (self.phase + phase_increment * frame_count) % 1.0

        return (np.sin(2.0 * np.pi * phases) * envelope * self.volume).astype(np.float32)

    def _audio_callback(self, in_data, frame_count, time_info, status):
        return (self.render(frame_count).tobytes(), pyaudio.paContinue)

    def set_key(self, key_down):
        """Set key state"""
        self.key_down = key_down

    def close(self):
        """Cleanup"""
        if self.stream:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        if self.audio:
            self.audio.terminate()
            self.audio = None
