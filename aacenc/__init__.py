"""Building blocks of an AAC encoder: bit writer, channel layout, ICS writers, codeword reordering, FFT, filter bank and block switching."""

__version__ = "0.1.0"
__all__ = ["bitwriter", "channels", "ics", "hcr", "fft", "blockswitch", "filtbank"]