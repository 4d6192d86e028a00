"""Image Engine - the building blocks of a conversion.

- Byte-signature sniffing (sniffer) and the guard chain (guards)
- Resize calculation (resize) and sliding-window admission (rate_limiter)
- pyvips decode/encode (codec)
- Output handle lifecycle (handles) and background checksums (checksum_worker)

Submodules are imported directly; this package keeps no import-time side effects.
"""
