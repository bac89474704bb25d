from dataclasses import dataclass, field

from cinepippin.text.predicates import has_time_overlap, timestamp_to_seconds


@dataclass(frozen=True)
class Frame:
    """A single timestamped subtitle entry."""

    index: int              # 1-based position in the subtitle file
    start_time: str         # "HH:MM:SS,mmm"
    end_time: str
    text: str               # raw_lines joined with "\n"
    raw_lines: tuple[str, ...] = field(default=())

    @classmethod
    def from_lines(cls, index: int, start_time: str, end_time: str, lines: list[str]) -> "Frame":
        return cls(
            index=index,
            start_time=start_time,
            end_time=end_time,
            text="\n".join(lines),
            raw_lines=tuple(lines),
        )

    @property
    def start_s(self) -> float:
        return timestamp_to_seconds(self.start_time)

    @property
    def end_s(self) -> float:
        return timestamp_to_seconds(self.end_time)

    def to_srt(self, index: int | None = None) -> str:
        """Render the frame as one SRT stanza, optionally renumbered."""
        number = self.index if index is None else index
        return f"{number}\n{self.start_time} --> {self.end_time}\n{self.text}"


@dataclass(frozen=True)
class Triplet:
    """Setup, 0-2 fillers, continuation and punchline frames ending on a keyword.

    ``position`` is the offset of the setup frame in the frame list the
    triplet was found in (not the SRT index).
    """

    frames: tuple[Frame, ...]
    keyword: str
    position: int = 0

    def __post_init__(self) -> None:
        if not 3 <= len(self.frames) <= 5:
            raise ValueError(
                f"A triplet holds 3 to 5 frames, got {len(self.frames)}"
            )

    @property
    def setup(self) -> Frame:
        return self.frames[0]

    @property
    def fillers(self) -> tuple[Frame, ...]:
        return self.frames[1:-2]

    @property
    def continuation(self) -> Frame:
        return self.frames[-2]

    @property
    def punchline(self) -> Frame:
        return self.frames[-1]

    @property
    def start_s(self) -> float:
        return self.frames[0].start_s

    @property
    def end_s(self) -> float:
        return self.frames[-1].end_s

    @property
    def time_range(self) -> tuple[float, float]:
        return (self.start_s, self.end_s)

    @property
    def end_position(self) -> int:
        """Offset of the punchline frame in the scanned frame list."""
        return self.position + len(self.frames) - 1

    def to_srt(self) -> str:
        return "\n\n".join(frame.to_srt() for frame in self.frames)


@dataclass(frozen=True)
class Sequence:
    """Three pairwise time-disjoint triplets played together as one joke unit."""

    triplets: tuple[Triplet, Triplet, Triplet]

    def __post_init__(self) -> None:
        if len(self.triplets) != 3:
            raise ValueError(f"A sequence holds exactly 3 triplets, got {len(self.triplets)}")
        for i, triplet in enumerate(self.triplets):
            others = [t.time_range for j, t in enumerate(self.triplets) if j != i]
            if has_time_overlap(triplet.time_range, others):
                raise ValueError(
                    f"Triplet {i + 1} ({triplet.start_s:.3f}-{triplet.end_s:.3f}s) "
                    "overlaps another triplet of the sequence"
                )

    @property
    def keyword(self) -> str:
        return self.triplets[0].keyword

    @property
    def start_s(self) -> float:
        return min(t.start_s for t in self.triplets)

    @property
    def end_s(self) -> float:
        return max(t.end_s for t in self.triplets)

    def to_text(self) -> str:
        """Render the sequence artifact: three SRT scenes split by ``---`` lines."""
        return "\n\n---\n\n".join(t.to_srt() for t in self.triplets) + "\n"
