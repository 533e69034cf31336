"""
Encoder Command
===============

Builds the ffmpeg argument list for an encode request.

Every encode shares a fixed preamble:
    - read the PNG sequence at the requested fps, starting at frame 0
    - convert full-range RGB into limited-range BT.709
    - tag the container with BT.709 primaries/transfer/matrix
    - move the moov atom to the front (fast start)

HEVC output additionally repeats the limited-range BT.709 signaling inside
the x265 parameters. Container tags and bitstream VUI must agree, otherwise
players disagree about the colors.
"""

from typing import List

from render_capture.models.encode import Codec, EncodeRequest


BT709 = "bt709"

COLOR_CONVERSION_FILTER = "scale=in_range=full:out_range=tv:out_color_matrix=bt709"

X265_COLOR_PARAMS = "colorprim=bt709:transfer=bt709:colormatrix=bt709:range=limited"


def _format_number(value: float) -> str:
    """Render 16.0 as "16" and 18.5 as "18.5"."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def common_input_args(fps: int, input_pattern: str) -> List[str]:
    """Preamble shared by every codec."""
    return [
        "-y",
        "-framerate", str(fps),
        "-start_number", "0",
        "-i", input_pattern,
        "-vf", COLOR_CONVERSION_FILTER,
        "-color_range", "tv",
        "-colorspace", BT709,
        "-color_primaries", BT709,
        "-color_trc", BT709,
        "-movflags", "+faststart",
    ]


def build_encoder_args(
    request: EncodeRequest,
    input_pattern: str,
    output_file: str,
) -> List[str]:
    """
    Build ffmpeg arguments (without the executable).

    Args:
        request: Coerced encode parameters
        input_pattern: printf-style frame pattern, relative to the encoder cwd
        output_file: Output path, relative to the encoder cwd

    Returns:
        Argument list ready for subprocess execution
    """
    args = common_input_args(request.fps, input_pattern)
    crf = _format_number(request.crf)

    if request.codec == Codec.HEVC10:
        args += [
            "-c:v", "libx265",
            "-pix_fmt", "yuv420p10le",
            "-profile:v", "main10",
            "-crf", crf,
            "-preset", request.preset,
            # QuickTime only plays HEVC-in-MP4 tagged hvc1
            "-tag:v", "hvc1",
            "-x265-params", X265_COLOR_PARAMS,
        ]
    else:
        args += [
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            "-crf", crf,
            "-preset", request.preset,
        ]

    args.append(output_file)
    return args
