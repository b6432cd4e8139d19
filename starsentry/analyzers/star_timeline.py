"""Daily star history built from a collected sample."""

import logging
from typing import Dict, Optional, Sequence

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import pandas as pd

from starsentry.core.models import StarRecord, TimelineEntry

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ["date", "stars", "fake_stars"]


def _as_days(values) -> pd.Series:
    """Dates or date strings as a datetime64[ns] series, so frames merge on one dtype."""
    return pd.Series(pd.to_datetime(list(values)), dtype="datetime64[ns]")


class StarTimeline:
    """
    Per-day view of the stars in a sample.

    Fake counts come from the analysis timeline, so they only cover the
    detailed sample.
    """

    def __init__(self, stargazers: Sequence[StarRecord], timeline: Sequence[TimelineEntry] = ()):
        self.stargazers = stargazers
        self.timeline = timeline
        self.df: Optional[pd.DataFrame] = None

    def build_daily_frame(self) -> pd.DataFrame:
        """Daily star and fake-star counts, with days without stars filled as zero."""
        if not self.stargazers:
            logger.debug("No stargazers to build a timeline from")
            self.df = pd.DataFrame(columns=FRAME_COLUMNS)
            return self.df

        stars = pd.DataFrame({"date": _as_days([r.starred_at.date() for r in self.stargazers])})
        daily = stars.groupby("date").size().reset_index(name="stars")

        fake_dates = _as_days([e.date for e in self.timeline if e.is_fake])
        if len(fake_dates):
            fakes = pd.DataFrame({"date": fake_dates}).groupby("date").size().reset_index(name="fake_stars")
            daily = pd.merge(daily, fakes, on="date", how="outer")
        else:
            daily["fake_stars"] = 0

        # Fill date gaps
        all_dates = pd.DataFrame(
            {"date": _as_days(pd.date_range(start=daily["date"].min(), end=daily["date"].max(), freq="D"))}
        )
        merged = pd.merge(all_dates, daily, on="date", how="left")
        merged["stars"] = merged["stars"].fillna(0).astype(int)
        merged["fake_stars"] = merged["fake_stars"].fillna(0).astype(int)
        merged.sort_values("date", inplace=True)
        merged.reset_index(drop=True, inplace=True)

        self.df = merged[FRAME_COLUMNS]
        return self.df

    def peak_day(self) -> Optional[Dict]:
        """The day with the most stars in the sample."""
        df = self.df if self.df is not None else self.build_daily_frame()
        if df.empty:
            return None
        row = df.loc[df["stars"].idxmax()]
        return {"date": row["date"].date().isoformat(), "stars": int(row["stars"])}

    def plot(self, save_path: str, title: str = "Star History") -> bool:
        """
        Save a bar chart of daily stars with fake-classified stars overlaid.

        Returns:
            bool: False when there was nothing to plot
        """
        df = self.df if self.df is not None else self.build_daily_frame()
        if df.empty:
            logger.warning("No star data to plot")
            return False

        plt.figure(figsize=(14, 7))
        ax = plt.gca()
        ax.bar(df["date"], df["stars"], color="lightblue", width=0.9, alpha=0.7, label="Daily Stars")
        if df["fake_stars"].any():
            ax.bar(
                df["date"],
                df["fake_stars"],
                color="red",
                width=0.9,
                alpha=0.6,
                label="Fake-classified (profiled sample)",
            )

        ax.set_title(title, fontsize=14)
        ax.set_xlabel("Date", fontsize=12)
        ax.set_ylabel("Stars per Day", fontsize=12)
        ax.legend(fontsize=10)
        ax.grid(True, linestyle="--", alpha=0.5)
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y-%m-%d"))
        plt.xticks(rotation=30, ha="right")
        plt.tight_layout()
        plt.savefig(save_path, dpi=150)
        plt.close()
        logger.info(f"Star history plot saved to {save_path}")
        return True
