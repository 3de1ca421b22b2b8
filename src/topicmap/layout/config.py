"""Configuration for layered forest layout."""

from dataclasses import dataclass, field

from topicmap.config import LayoutDirection, Settings, settings


@dataclass(frozen=True)
class NodeBox:
    """Width/height of a node's bounding box."""

    width: float
    height: float


@dataclass(frozen=True)
class LayoutConfig:
    """Placement policy: direction, gaps, margins and per-level box sizes."""

    direction: LayoutDirection = "LR"
    rank_sep: float = 200.0  # Gap between parent rank and child rank
    node_sep: float = 100.0  # Gap between siblings (and between trees)
    margin_x: float = 50.0
    margin_y: float = 50.0

    # Three size tiers; the root must stay visually dominant
    root_box: NodeBox = field(default=NodeBox(280.0, 120.0))  # level 0
    category_box: NodeBox = field(default=NodeBox(220.0, 100.0))  # level 1
    default_box: NodeBox = field(default=NodeBox(180.0, 80.0))  # level >= 2

    def __post_init__(self) -> None:
        if self.direction not in ("LR", "RL", "TB", "BT"):
            raise ValueError(f"Unknown layout direction: {self.direction}")
        if self.rank_sep < 0 or self.node_sep < 0:
            raise ValueError("Layout gaps must be non-negative")
        tiers = (self.root_box, self.category_box, self.default_box)
        for larger, smaller in zip(tiers, tiers[1:]):
            if larger.width < smaller.width or larger.height < smaller.height:
                raise ValueError(
                    "Node boxes must shrink with depth: "
                    f"{larger} is smaller than {smaller}"
                )
        if self.default_box.width <= 0 or self.default_box.height <= 0:
            raise ValueError("Node boxes must have a positive size")

    @property
    def is_horizontal(self) -> bool:
        return self.direction in ("LR", "RL")

    def box_for(self, level: int) -> NodeBox:
        """Box size tier for a node level."""
        if level == 0:
            return self.root_box
        if level == 1:
            return self.category_box
        return self.default_box

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "LayoutConfig":
        """Build the layout policy from application settings."""
        config = config or settings
        return cls(
            direction=config.layout_direction,
            rank_sep=config.layout_rank_sep,
            node_sep=config.layout_node_sep,
            margin_x=config.layout_margin_x,
            margin_y=config.layout_margin_y,
            root_box=NodeBox(config.root_node_width, config.root_node_height),
            category_box=NodeBox(config.category_node_width, config.category_node_height),
            default_box=NodeBox(config.default_node_width, config.default_node_height),
        )
