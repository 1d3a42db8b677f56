"""
pipeline.py
===========

Archive transform pipeline shared by both conversion directions.

A :class:`ConversionProfile` describes one direction (which manifest to look
for, how to map paths, how to render the new manifest, whether atlas indices
are synthesized). :class:`PackConverter` drives a single conversion through

    IDLE -> UNPACKING -> MANIFEST_VALIDATED -> MAPPING -> SYNTHESIZING -> PACKING -> COMPLETE

with ``FAILED`` reachable from any non-terminal state. :meth:`PackConverter.steps`
is a generator that suspends after opening the archive, after every entry, after
synthesis and after packing; callers that stop iterating get the same cleanup
as a failed conversion.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, Tuple

from .archive import ArchiveSource, Entry, PackageReader, PackageWriter
from .config import DEFAULT_PACK_NAME, ConversionSettings
from .errors import (
    ArchiveWriteError,
    BadVersionStringError,
    ConversionError,
    InvalidManifestError,
    ManifestError,
    ManifestErrorKind,
    MissingManifestError,
)
from .events import ConversionEvents, NullEvents, Phase, PhaseProgress
from .indices import synthesize
from .manifest import (
    BedrockManifest,
    JavaPackMeta,
    parse_source_manifest,
    parse_target_manifest,
    render_source_manifest,
    render_target_manifest,
)
from .paths import (
    BEDROCK_ICON,
    BEDROCK_MANIFEST,
    JAVA_ICON,
    JAVA_MANIFEST,
    MappingOutcome,
    PathMapping,
    classify_bedrock_path,
    classify_java_path,
)

LOGGER = logging.getLogger(__name__)


class ConversionState(str, Enum):
    IDLE = "idle"
    UNPACKING = "unpacking"
    MANIFEST_VALIDATED = "manifest_validated"
    MAPPING = "mapping"
    SYNTHESIZING = "synthesizing"
    PACKING = "packing"
    COMPLETE = "complete"
    FAILED = "failed"


class Direction(str, Enum):
    JAVA_TO_BEDROCK = "java-to-bedrock"
    BEDROCK_TO_JAVA = "bedrock-to-java"


@dataclass
class ConversionStats:
    entries_total: int = 0
    entries_copied: int = 0
    dropped_known_auxiliary: int = 0
    dropped_unsupported: int = 0
    dropped_unrecognized: int = 0
    icon_copied: bool = False
    generated: List[str] = field(default_factory=list)

    @property
    def entries_dropped(self) -> int:
        return self.dropped_known_auxiliary + self.dropped_unsupported + self.dropped_unrecognized


_DROP_COUNTERS = {
    MappingOutcome.KNOWN_AUXILIARY: "dropped_known_auxiliary",
    MappingOutcome.UNSUPPORTED: "dropped_unsupported",
    MappingOutcome.UNRECOGNIZED: "dropped_unrecognized",
}


@dataclass
class ConversionContext:
    """Per-conversion accumulator of ``source path -> target path`` pairs."""

    converted: Dict[str, str] = field(default_factory=dict)
    targets: Set[str] = field(default_factory=set)
    stats: ConversionStats = field(default_factory=ConversionStats)

    def record(self, source_path: str, target_path: str) -> None:
        if source_path in self.converted:
            raise ValueError(f"{source_path} was already converted")
        self.converted[source_path] = target_path
        self.targets.add(target_path)
        self.stats.entries_copied += 1

    def drop(self, source_path: str, outcome: MappingOutcome) -> None:
        counter = _DROP_COUNTERS[outcome]
        setattr(self.stats, counter, getattr(self.stats, counter) + 1)
        LOGGER.debug("Dropped %s (%s)", source_path, outcome.value)


@dataclass(frozen=True)
class ConversionProfile:
    direction: Direction
    source_label: str
    target_label: str
    source_manifest: str
    source_icon: str
    target_icon: str
    source_extensions: Tuple[str, ...]
    target_extension: str
    classify: Callable[[str, str], PathMapping]
    parse_manifest: Callable[[bytes], Any]
    render_manifest: Callable[[Any, ConversionSettings], Tuple[str, bytes]]
    synthesize: Optional[Callable[[Mapping[str, str]], Dict[str, bytes]]] = None

    @property
    def reserved_names(self) -> frozenset:
        return frozenset({self.source_manifest, self.source_icon})

    def output_name(self, source_name: str) -> str:
        base = Path(source_name).name
        for extension in self.source_extensions:
            if base.lower().endswith(extension):
                base = base[: -len(extension)]
                break
        return f"converted_{base}{self.target_extension}"


@dataclass(frozen=True)
class ConversionResult:
    direction: Direction
    output_path: Path
    manifest: Any
    converted: Dict[str, str]
    stats: ConversionStats

    def report(self) -> Dict[str, object]:
        return {
            "direction": self.direction.value,
            "output_path": str(self.output_path),
            "stats": asdict(self.stats),
            "converted": self.converted,
        }


def _render_bedrock_manifest(meta: JavaPackMeta, settings: ConversionSettings) -> Tuple[str, bytes]:
    name = f"{meta.description or DEFAULT_PACK_NAME} (Converted by {settings.credit})"
    description = f"Converted from Java Edition (Format {meta.pack_format}) by {settings.credit}"
    return BEDROCK_MANIFEST, render_target_manifest(name, description, settings.min_engine_version)


def _render_java_manifest(manifest: BedrockManifest, settings: ConversionSettings) -> Tuple[str, bytes]:
    name = f"{manifest.name or DEFAULT_PACK_NAME} (Converted by {settings.credit})"
    description = f"{name}: converted from Bedrock Edition by {settings.credit}"
    return JAVA_MANIFEST, render_source_manifest(name, description, settings.java_pack_format)


JAVA_TO_BEDROCK = ConversionProfile(
    direction=Direction.JAVA_TO_BEDROCK,
    source_label="Java",
    target_label="Bedrock",
    source_manifest=JAVA_MANIFEST,
    source_icon=JAVA_ICON,
    target_icon=BEDROCK_ICON,
    source_extensions=(".zip",),
    target_extension=".mcpack",
    classify=classify_java_path,
    parse_manifest=parse_source_manifest,
    render_manifest=_render_bedrock_manifest,
    synthesize=synthesize,
)

BEDROCK_TO_JAVA = ConversionProfile(
    direction=Direction.BEDROCK_TO_JAVA,
    source_label="Bedrock",
    target_label="Java",
    source_manifest=BEDROCK_MANIFEST,
    source_icon=BEDROCK_ICON,
    target_icon=JAVA_ICON,
    source_extensions=(".mcpack", ".zip"),
    target_extension=".zip",
    classify=classify_bedrock_path,
    parse_manifest=parse_target_manifest,
    render_manifest=_render_java_manifest,
)

PROFILES: Dict[Direction, ConversionProfile] = {
    Direction.JAVA_TO_BEDROCK: JAVA_TO_BEDROCK,
    Direction.BEDROCK_TO_JAVA: BEDROCK_TO_JAVA,
}


def get_profile(direction: Direction) -> ConversionProfile:
    return PROFILES[Direction(direction)]


class PackConverter:
    """Runs exactly one conversion; create a new instance per input package."""

    def __init__(
        self,
        profile: ConversionProfile,
        settings: Optional[ConversionSettings] = None,
        events: Optional[ConversionEvents] = None,
    ) -> None:
        self.profile = profile
        self.settings = settings or ConversionSettings()
        self.events = events or NullEvents()
        self.state = ConversionState.IDLE
        self.context: Optional[ConversionContext] = None
        self.result: Optional[ConversionResult] = None
        self.error: Optional[ConversionError] = None

    def _enter(self, state: ConversionState) -> ConversionState:
        LOGGER.debug("%s -> %s", self.state.value, state.value)
        self.state = state
        self.events.on_state(state)
        return state

    def _fail(self, error: ConversionError) -> None:
        self.error = error
        self._enter(ConversionState.FAILED)
        LOGGER.error("Error during conversion [%s]: %s", error.kind, error)

    def run(
        self,
        source: ArchiveSource,
        output_dir: Path,
        source_name: Optional[str] = None,
    ) -> ConversionResult:
        for _state in self.steps(source, output_dir, source_name=source_name):
            pass
        if self.result is None:
            raise RuntimeError("conversion stopped before producing a result")
        return self.result

    def steps(
        self,
        source: ArchiveSource,
        output_dir: Path,
        source_name: Optional[str] = None,
    ) -> Iterator[ConversionState]:
        if self.state is not ConversionState.IDLE:
            raise RuntimeError("PackConverter instances run a single conversion")

        if source_name is None:
            source_name = Path(source).name if isinstance(source, (str, Path)) else "pack"
        destination = Path(output_dir) / self.profile.output_name(source_name)

        context = ConversionContext()
        self.context = context
        reader = PackageReader(source)
        writer: Optional[PackageWriter] = None
        finished = False

        try:
            self.settings.check()
            if destination.exists() and not self.settings.overwrite:
                raise ArchiveWriteError(f"{destination} already exists (use --force to overwrite)")

            yield self._enter(ConversionState.UNPACKING)
            entries = self._unpack(reader)
            yield self.state

            manifest = self._validate_manifest(reader)
            writer = PackageWriter(destination, compression_level=self.settings.compression_level)
            self._copy_icon(reader, writer, context)
            yield self._enter(ConversionState.MANIFEST_VALIDATED)

            self._enter(ConversionState.MAPPING)
            pending = [
                entry
                for entry in entries
                if not entry.is_dir and entry.path not in self.profile.reserved_names
            ]
            context.stats.entries_total = len(pending)
            progress = PhaseProgress(self.events, Phase.MAP)
            progress.start()
            for processed, entry in enumerate(pending, start=1):
                self._map_entry(reader, writer, entry, context)
                progress(processed * 100.0 / len(pending))
                yield self.state
            progress.finish()
            if context.stats.dropped_unsupported:
                LOGGER.warning(
                    "Dropped %d PBR material / custom entity model file(s); %s packs cannot express them.",
                    context.stats.dropped_unsupported,
                    self.profile.target_label,
                )

            yield self._enter(ConversionState.SYNTHESIZING)
            self._synthesize(writer, context, manifest)

            self._enter(ConversionState.PACKING)
            progress = PhaseProgress(self.events, Phase.PACK)
            progress.start()
            output_path = writer.finalize(progress=progress)
            progress.finish()
            finished = True

            self.result = ConversionResult(
                direction=self.profile.direction,
                output_path=output_path,
                manifest=manifest,
                converted=dict(context.converted),
                stats=context.stats,
            )
            LOGGER.info(
                "Converted %s pack: %d copied / %d dropped -> %s",
                self.profile.source_label,
                context.stats.entries_copied,
                context.stats.entries_dropped,
                output_path,
            )
            yield self._enter(ConversionState.COMPLETE)
        except ConversionError as exc:
            self._fail(exc)
            raise
        except OSError as exc:
            error = ArchiveWriteError(f"I/O failure: {exc}")
            self._fail(error)
            raise error from exc
        finally:
            reader.close()
            if not finished:
                if writer is not None:
                    writer.discard()
                if self.state is not ConversionState.FAILED:
                    LOGGER.info("Conversion abandoned in state %s.", self.state.value)
                    self._enter(ConversionState.FAILED)

    def _unpack(self, reader: PackageReader) -> List[Entry]:
        progress = PhaseProgress(self.events, Phase.UNPACK)
        progress.start()
        reader.open()
        entries = reader.index(progress=progress)
        progress.finish()
        LOGGER.debug("Indexed %d archive entries.", len(entries))
        return entries

    def _validate_manifest(self, reader: PackageReader) -> Any:
        manifest_name = self.profile.source_manifest
        entry = reader.find(manifest_name)
        if entry is None or entry.is_dir:
            raise MissingManifestError(
                f"Invalid {self.profile.source_label} resource pack: {manifest_name} not found."
            )
        try:
            manifest = self.profile.parse_manifest(reader.read(entry))
        except ManifestError as exc:
            raise InvalidManifestError(
                f"Could not parse {manifest_name} ({exc.kind.value}): {exc}", cause=exc
            ) from exc
        LOGGER.info("%s manifest: %s", self.profile.source_label, manifest)
        return manifest

    def _copy_icon(self, reader: PackageReader, writer: PackageWriter, context: ConversionContext) -> None:
        entry = reader.find(self.profile.source_icon)
        if entry is None or entry.is_dir:
            return
        with reader.open_entry(entry) as handle:
            writer.add_stream(self.profile.target_icon, handle)
        context.stats.icon_copied = True
        LOGGER.info("Copied %s to %s", self.profile.source_icon, self.profile.target_icon)

    def _map_entry(
        self,
        reader: PackageReader,
        writer: PackageWriter,
        entry: Entry,
        context: ConversionContext,
    ) -> None:
        mapping = self.profile.classify(entry.path, self.settings.namespace)
        if not mapping.mapped:
            context.drop(entry.path, mapping.outcome)
            return
        if mapping.target in context.targets:
            LOGGER.warning("%s also maps to %s; keeping the later entry.", entry.path, mapping.target)
        with reader.open_entry(entry) as handle:
            writer.add_stream(mapping.target, handle)
        context.record(entry.path, mapping.target)

    def _synthesize(self, writer: PackageWriter, context: ConversionContext, manifest: Any) -> None:
        if self.profile.synthesize is not None:
            for path, payload in self.profile.synthesize(context.converted).items():
                writer.add_bytes(path, payload)
                context.stats.generated.append(path)
                LOGGER.info("Generated %s", path)

        try:
            path, payload = self.profile.render_manifest(manifest, self.settings)
        except ManifestError as exc:
            if exc.kind is ManifestErrorKind.BAD_VERSION_STRING:
                raise BadVersionStringError(str(exc)) from exc
            raise InvalidManifestError(str(exc), cause=exc) from exc
        writer.add_bytes(path, payload)
        context.stats.generated.append(path)
        LOGGER.info("Generated %s for %s pack.", path, self.profile.target_label)


def convert_package(
    direction: Direction,
    source: ArchiveSource,
    output_dir: Path,
    settings: Optional[ConversionSettings] = None,
    events: Optional[ConversionEvents] = None,
    source_name: Optional[str] = None,
) -> ConversionResult:
    converter = PackConverter(get_profile(direction), settings=settings, events=events)
    return converter.run(source, output_dir, source_name=source_name)
