from dataclasses import dataclass
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "seed"


@dataclass(frozen=True)
class SeedConfig:
    """
    Locations of the bundled seed files.

    Reviews and discussions name their author by username and their
    restaurant by name; both are resolved to ids at load time.
    """

    seed_dir: Path = _DATA_DIR
    restaurants_filename: str = "restaurants.csv"
    users_filename: str = "users.csv"
    reviews_filename: str = "reviews.csv"
    discussions_filename: str = "discussions.csv"

    @property
    def restaurants_path(self) -> Path:
        return self.seed_dir / self.restaurants_filename

    @property
    def users_path(self) -> Path:
        return self.seed_dir / self.users_filename

    @property
    def reviews_path(self) -> Path:
        return self.seed_dir / self.reviews_filename

    @property
    def discussions_path(self) -> Path:
        return self.seed_dir / self.discussions_filename


DEFAULT_SEED_CONFIG = SeedConfig()
