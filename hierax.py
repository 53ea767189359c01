"""
Hierax command line.

Enhances the legibility of papyrus images and writes every variant next to
the inputs, in an "enhanced" directory by default.

Usage:
    hierax scans/*.tif --adapthisteq --mask --mask-background darkBackground
    hierax P1.jpg --retinex --retinex-method MSR-V --retinex-provider mypkg.retinex:run
"""

from typing import List, Optional
import argparse
import logging
import signal
import sys

from HX_Libs.constants import (
    DEFAULT_EXIFTOOL,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_OUTPUT_DIR_NAME,
    LIGHT_BACKGROUND,
    MASK_BACKGROUNDS,
    RETINEX_COLOR_METHODS,
)
from HX_Libs.BatchLib import (
    BatchRunner,
    CancellationToken,
    OutputSettings,
    get_supported_formats,
    is_supported_format,
    summarize,
)
from HX_Libs.EnhancementLib import EnhancementRequest, load_retinex_provider
from HX_Libs.ImagingLib import GamutExpander, GaborBankConfig

logger = logging.getLogger("hierax")

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hierax",
        description="Hierax - legibility enhancement of papyri",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    on_off = argparse.BooleanOptionalAction

    parser.add_argument("inputs", nargs="+", help="Input image paths")

    methods = parser.add_argument_group("methods")
    methods.add_argument("--vividness", action=on_off, default=True, help="Vividness")
    methods.add_argument("--lsv", action=on_off, default=True, help="Lightness and saturation/value difference")
    methods.add_argument("--adapthisteq", action=on_off, default=False, help="Adaptive histogram equalization")
    methods.add_argument("--retinex", action=on_off, default=False, help="External retinex capability")
    methods.add_argument(
        "--retinex-method",
        dest="retinex_methods",
        action="append",
        choices=RETINEX_COLOR_METHODS,
        metavar="METHOD",
        help=f"Retinex method for color images, repeatable ({', '.join(RETINEX_COLOR_METHODS)})",
    )
    methods.add_argument(
        "--retinex-provider",
        metavar="MODULE:FUNCTION",
        help="Callable implementing retinex(pixels, method, postprocessing)",
    )

    post = parser.add_argument_group("postprocessing")
    post.add_argument("--negative", action=on_off, default=True, help="Negative polarity variants")
    post.add_argument("--blue", action=on_off, default=True, help="Blue negative variants (color only)")

    masking = parser.add_argument_group("masking")
    masking.add_argument("--mask", action=on_off, default=False, help="Keep the background undisturbed")
    masking.add_argument("--mask-background", choices=MASK_BACKGROUNDS, default=LIGHT_BACKGROUND)
    masking.add_argument("--deshadow", action=on_off, default=False, help="Remove shadows before masking")
    masking.add_argument("--red-channel-only", action=on_off, default=False, help="Use the red channel only")
    masking.add_argument("--gabor-wavelength", type=float, default=GaborBankConfig.wavelength)
    masking.add_argument("--gabor-orientation-step", type=float, default=GaborBankConfig.orientation_step)
    masking.add_argument("--gabor-bandwidth", type=float, default=GaborBankConfig.bandwidth)
    masking.add_argument("--gabor-aspect-ratio", type=float, default=GaborBankConfig.aspect_ratio)

    output = parser.add_argument_group("output")
    output.add_argument("--jpeg", action=on_off, default=True, help="Write JPEG files")
    output.add_argument("--tiff", action=on_off, default=False, help="Write TIFF files")
    output.add_argument("--jpeg-quality", type=int, default=DEFAULT_JPEG_QUALITY)
    output.add_argument("--output-dir", help="Output directory (default: <input dir>/<output dir name>)")
    output.add_argument("--output-dir-name", default=DEFAULT_OUTPUT_DIR_NAME)
    output.add_argument("--embed-icc", action=on_off, default=True, help="Embed the sRGB profile")
    output.add_argument("--exiftool", default=DEFAULT_EXIFTOOL, help="ExifTool executable")

    profiles = parser.add_argument_group("color profiles")
    profiles.add_argument("--profile-dir", help="Directory holding the ICC profiles")
    profiles.add_argument("--srgb-profile", help="sRGB IEC 61966-2.1 profile file")
    profiles.add_argument("--adobe-rgb-profile", help="Adobe RGB (1998) profile file")

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def request_from_args(args: argparse.Namespace) -> EnhancementRequest:
    return EnhancementRequest(
        vividness=args.vividness,
        lsv=args.lsv,
        adapthisteq=args.adapthisteq,
        retinex=args.retinex,
        retinex_methods=tuple(args.retinex_methods or ()),
        negative=args.negative,
        blue=args.blue,
        mask=args.mask,
        mask_background=args.mask_background,
        deshadow=args.deshadow,
        red_channel_only=args.red_channel_only,
    )


def settings_from_args(args: argparse.Namespace) -> OutputSettings:
    return OutputSettings(
        jpeg=args.jpeg,
        tiff=args.tiff,
        jpeg_quality=args.jpeg_quality,
        output_dir_name=args.output_dir_name,
        embed_icc=args.embed_icc,
        exiftool=args.exiftool,
        icc_profile_path=args.srgb_profile,
    )


def warn_unsupported(inputs: List[str]) -> List[str]:
    """Log a warning for each input without a known image extension and return them."""
    unsupported = [path for path in inputs if not is_supported_format(path)]
    if unsupported:
        supported = ", ".join(get_supported_formats())
        for path in unsupported:
            logger.warning(f"{path} does not have a supported image extension ({supported})")
    return unsupported


def ask_stop() -> bool:
    """Ask on the terminal whether to stop; anything but yes resumes."""
    try:
        answer = input("Stop processing? [y/N] ")
    except EOFError:
        return True
    return answer.strip().lower() in ("y", "yes")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        request = request_from_args(args)
        settings = settings_from_args(args)
        gabor_config = GaborBankConfig(
            wavelength=args.gabor_wavelength,
            orientation_step=args.gabor_orientation_step,
            bandwidth=args.gabor_bandwidth,
            aspect_ratio=args.gabor_aspect_ratio,
        )
        retinex = load_retinex_provider(args.retinex_provider) if args.retinex_provider else None
        runner = BatchRunner(
            request,
            settings=settings,
            retinex=retinex,
            gamut_expander=GamutExpander(
                profile_dir=args.profile_dir,
                srgb_profile_path=args.srgb_profile,
                adobe_rgb_profile_path=args.adobe_rgb_profile,
            ),
            gabor_config=gabor_config,
            token=CancellationToken(),
            confirm_abort=ask_stop,
        )
        runner.validate()
    except (ValueError, ImportError) as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    # inputs are still attempted; unreadable ones end up in the summary
    warn_unsupported(args.inputs)

    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: runner.token.cancel())
    try:
        result = runner.run(args.inputs, output_dir=args.output_dir)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    print(summarize(result))

    return EXIT_ABORTED if result.aborted else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
