"""
Batch processing of papyrus images.

Images are processed one at a time: read, classify, expand the gamut,
optionally segment the background, then generate and write every variant
of every enabled operator. Unreadable files are logged and skipped. The
first image that could be read keeps its bitmaps for display; the others
are written to disk only.

A masked pass (when masking is enabled) runs before the unmasked pass, and
the generation indices of an image run on across both.

Classes:
    UnreadableImage: An input that could not be read
    ImageResult: Outcome of one input image
    BatchResult: Outcome of a batch
    BatchRunner: Runs an EnhancementRequest over a list of paths

Functions:
    run_batch: Convenience wrapper around BatchRunner
    summarize: Status text of a batch result
    grayscale_warning: User-facing message for grayscale-unsupported operators
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union
import logging

from HX_Libs.constants import LABEL_ORIGINAL, UNREADABLE_LOG_FILENAME
from HX_Libs.BatchLib.cancellation import CancellationToken
from HX_Libs.BatchLib.image_reader import read_image
from HX_Libs.BatchLib.output_writer import OutputSettings, OutputWriter
from HX_Libs.EnhancementLib.enhancement_request import EnhancementRequest
from HX_Libs.EnhancementLib.operator_registry import (
    OperatorContext,
    OperatorRegistry,
    get_default_registry,
)
from HX_Libs.EnhancementLib.operators import PreparedImage, prepare_image
from HX_Libs.EnhancementLib.retinex import RetinexFunction
from HX_Libs.EnhancementLib.variant_expander import (
    ExpansionState,
    applicable_operators,
    iter_variants,
    unsupported_operators,
)
from HX_Libs.ImagingLib.classifier import classify_image
from HX_Libs.ImagingLib.color_space import GamutExpander
from HX_Libs.ImagingLib.image_models import BackgroundMask, OutputSet, RasterImage
from HX_Libs.ImagingLib.segmentation import (
    GaborBankConfig,
    deshadowed_lightness,
    segment_background,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class UnreadableImage:
    """An input skipped because it could not be read.

    Attributes:
        path: Path as given
        position: 1-based position in the batch
        reason: Error message of the reader
    """
    path: str
    position: int
    reason: str = ""


@dataclass
class ImageResult:
    """Outcome of one input image."""
    path: str
    labels: Tuple[str, ...] = ()
    indices: Tuple[int, ...] = ()
    written: List[str] = field(default_factory=list)
    mask_path: Optional[str] = None
    grayscale: bool = False
    red_channel: bool = False

    @property
    def processed(self) -> bool:
        """True if at least one variant was generated."""
        return len(self.labels) > 0


@dataclass
class BatchResult:
    """Outcome of a batch.

    Attributes:
        first_output_set: Bitmaps, labels and indices of the first readable
            image; "Original" is that image after gamut expansion. None if no
            image could be read
        images: Per-image results in input order, unreadable ones excluded
        unreadable: Skipped inputs
        status_messages: Non-fatal statuses for the status bar
        warnings: User-facing warnings (profiles, grayscale support)
        aborted: True if the user confirmed cancellation
        output_dir: Directory the files were written to
        total: Number of input paths
    """
    first_output_set: Optional[OutputSet] = None
    images: List[ImageResult] = field(default_factory=list)
    unreadable: List[UnreadableImage] = field(default_factory=list)
    status_messages: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    aborted: bool = False
    output_dir: Optional[Path] = None
    total: int = 0

    @property
    def first_image(self) -> Optional[ImageResult]:
        return self.images[0] if self.images else None

    @property
    def first_is_grayscale(self) -> bool:
        return self.first_image is not None and self.first_image.grayscale

    @property
    def first_processed(self) -> bool:
        return self.first_image is not None and self.first_image.processed

    @property
    def generated_count(self) -> int:
        """Number of enhanced images generated over the batch."""
        return sum(len(image.labels) for image in self.images)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def grayscale_warning(operators: Sequence[str]) -> str:
    return (
        f"The selected methods {', '.join(operators)} do not support grayscale images. "
        f"Please select Adapthisteq and/or Retinex."
    )


def summarize(result: BatchResult) -> str:
    """
    Status text of a batch, e.g. "12 images generated | 1/5 unreadable image".
    """
    parts = []
    if result.aborted:
        parts.append("Processing aborted")
    parts.append(f"{_plural(result.generated_count, 'image')} generated")
    parts.extend(result.status_messages)
    return " | ".join(parts)


class BatchRunner:
    """
    Runs an EnhancementRequest over a list of image paths.

    Example:
        >>> runner = BatchRunner(EnhancementRequest(vividness=True, lsv=False))
        >>> result = runner.run(["scans/P1.tif", "scans/P2.tif"])
        >>> summarize(result)
        '4 images generated'
    """

    def __init__(
        self,
        request: EnhancementRequest,
        settings: Optional[OutputSettings] = None,
        retinex: Optional[RetinexFunction] = None,
        gamut_expander: Optional[GamutExpander] = None,
        gabor_config: Optional[GaborBankConfig] = None,
        registry: Optional[OperatorRegistry] = None,
        token: Optional[CancellationToken] = None,
        confirm_abort: Optional[Callable[[], bool]] = None,
    ):
        """
        Args:
            request: Methods and options of the run
            settings: Output formats and directory (default: OutputSettings())
            retinex: External retinex capability, required if retinex is enabled
            gamut_expander: Profile transform (default: GamutExpander() without
                an Adobe RGB profile, which disables expansion with a warning)
            gabor_config: Segmentation filter bank (default: GaborBankConfig())
            registry: Operator registry (default: the global registry)
            token: Cancellation token checked after every variant
            confirm_abort: Called when the token is tripped; True aborts the
                batch, False resumes (default: always abort)
        """
        self.request = request
        self.settings = settings or OutputSettings()
        self.retinex = retinex
        self.gamut_expander = gamut_expander or GamutExpander()
        self.gabor_config = gabor_config or GaborBankConfig()
        self.registry = registry or get_default_registry()
        self.token = token or CancellationToken()
        self.confirm_abort = confirm_abort or (lambda: True)

    def validate(self) -> None:
        """
        Reject the run before any image is touched.

        Raises:
            ValueError: If the request is invalid or retinex is enabled without
                a retinex capability
        """
        self.request.validate()
        if self.request.retinex and self.retinex is None:
            raise ValueError("Retinex is enabled but no retinex capability is configured")

    def run(self, paths: Sequence[PathLike], output_dir: Optional[PathLike] = None) -> BatchResult:
        """
        Process ``paths`` in order.

        Args:
            paths: Input image paths
            output_dir: Where to write (default: "<first input dir>/<output_dir_name>")

        Returns:
            BatchResult

        Raises:
            ValueError: If the configuration is invalid or no path is given
            OSError: If an output file cannot be written
        """
        self.validate()
        if not paths:
            raise ValueError("No input images given")

        output_dir = Path(output_dir) if output_dir else Path(paths[0]).parent / self.settings.output_dir_name
        result = BatchResult(output_dir=output_dir, total=len(paths))
        log_path = output_dir / UNREADABLE_LOG_FILENAME
        context = OperatorContext(request=self.request, retinex=self.retinex)

        logger.info(f"Enhancing {_plural(len(paths), 'image')} into {output_dir}")

        with OutputWriter(output_dir, self.settings) as writer:
            writer.ensure_output_dir()

            for position, path in enumerate(paths, start=1):
                try:
                    pixels = read_image(path)
                except (OSError, ValueError) as e:
                    self._record_unreadable(result, log_path, str(path), position, str(e))
                    continue

                retain = result.first_output_set is None
                image_result, output_set, aborted = self._process_image(
                    pixels, str(path), context, writer, retain, result
                )
                result.images.append(image_result)
                if retain:
                    result.first_output_set = output_set

                logger.info(
                    f"[{position}/{len(paths)}] {path}: "
                    f"{_plural(len(image_result.labels), 'image')} generated"
                )

                if aborted:
                    result.aborted = True
                    logger.warning("Processing aborted by user")
                    break

            result.status_messages.extend(writer.status_messages)

        if result.unreadable:
            result.status_messages.append(
                f"{len(result.unreadable)}/{len(paths)} unreadable "
                f"image{'' if len(result.unreadable) == 1 else 's'}"
            )
        elif log_path.exists():
            log_path.unlink()

        for message in self.gamut_expander.warnings:
            if message not in result.warnings:
                result.warnings.append(message)

        logger.info(summarize(result))
        return result

    def _record_unreadable(
        self,
        result: BatchResult,
        log_path: Path,
        path: str,
        position: int,
        reason: str,
    ) -> None:
        logger.warning(f"Skipping unreadable image {path}: {reason}")
        mode = "w" if not result.unreadable else "a"
        with open(log_path, mode, encoding="utf-8") as f:
            f.write(path + "\n")
        result.unreadable.append(UnreadableImage(path=path, position=position, reason=reason))

    def _process_image(
        self,
        pixels,
        path: str,
        context: OperatorContext,
        writer: OutputWriter,
        retain: bool,
        result: BatchResult,
    ) -> Tuple[ImageResult, OutputSet, bool]:
        request = self.request
        raster = classify_image(pixels, red_channel_only=request.red_channel_only)
        image_result = ImageResult(path=path, grayscale=raster.grayscale, red_channel=raster.red_channel)

        unsupported = unsupported_operators(request, raster.grayscale, self.registry)
        if unsupported:
            message = grayscale_warning(unsupported)
            logger.warning(f"{path}: {message}")
            if message not in result.warnings:
                result.warnings.append(message)

        state = ExpansionState(keep_bitmaps=retain)
        aborted = False
        expanded = raster

        if applicable_operators(request, raster.grayscale, self.registry):
            expanded = self.gamut_expander.expand(raster)
            prepared = prepare_image(expanded)
            passes = [prepared]
            if request.mask:
                mask = self._segment(prepared)
                image_result.mask_path = str(writer.write_mask(mask, path))
                passes.insert(0, prepared.with_mask(mask))

            for prepared_pass in passes:
                state, aborted = self._expand(prepared_pass, path, context, writer, state)
                if aborted:
                    break

        output_set = state.output_set
        if retain and (not raster.grayscale or state.count > 0):
            output_set = output_set.prepend(expanded.pixels, LABEL_ORIGINAL, 0)

        image_result.labels = state.output_set.labels
        image_result.indices = state.output_set.indices
        image_result.written = list(state.written)
        return image_result, output_set, aborted

    def _segment(self, prepared: PreparedImage) -> BackgroundMask:
        deshadow = self.request.deshadow and not prepared.grayscale
        field = deshadowed_lightness(prepared.raster) if deshadow else prepared.lightness
        return segment_background(
            field,
            self.request.mask_background,
            deshadowed=deshadow,
            config=self.gabor_config,
        )

    def _expand(
        self,
        prepared: PreparedImage,
        path: str,
        context: OperatorContext,
        writer: OutputWriter,
        state: ExpansionState,
    ) -> Tuple[ExpansionState, bool]:
        """Fold the variants of one pass into ``state``; the flag is True on abort."""
        raster: RasterImage = prepared.raster
        deshadowed = prepared.masked and prepared.mask.deshadowed

        for variant in iter_variants(prepared, context, state.next_index, self.registry):
            written = writer.write_variant(
                variant.bitmap,
                path,
                variant.method_file_label,
                masked=variant.masked,
                red_channel=raster.red_channel,
                mask_background=self.request.mask_background,
                deshadowed=deshadowed,
            )
            state = state.emit(variant, tuple(str(p) for p in written))

            if self.token.cancelled:
                if self.confirm_abort():
                    return state, True
                self.token.reset()
                logger.info("Cancellation declined, resuming")

        return state, False


def run_batch(
    request: EnhancementRequest,
    paths: Sequence[PathLike],
    settings: Optional[OutputSettings] = None,
    output_dir: Optional[PathLike] = None,
    **runner_options,
) -> BatchResult:
    """
    Run ``request`` over ``paths``.

    Keyword arguments other than ``settings`` and ``output_dir`` are passed
    to BatchRunner (retinex, gamut_expander, token, confirm_abort, ...).
    """
    return BatchRunner(request, settings=settings, **runner_options).run(paths, output_dir=output_dir)
