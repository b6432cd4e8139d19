"""Command-line interface for StarSentry."""

import sys
import argparse
import logging

from starsentry.main import StarSentry
from starsentry.analyzers.star_timeline import StarTimeline
from starsentry.core.config import StarSentryConfig
from starsentry.core.errors import ApiError

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("starsentry")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="StarSentry - GitHub Fake Star Detection from Stargazer Patterns"
    )
    parser.add_argument("owner_repo", help="GitHub repository in format 'owner/repo' or full URL")
    parser.add_argument("-t", "--token", help="GitHub personal access token (or set GITHUB_TOKEN env var)")
    parser.add_argument(
        "-f", "--format", choices=["text", "json", "markdown"], default="text", help="Output format"
    )
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose DEBUG logging")
    parser.add_argument(
        "--basic",
        action="store_true",
        help="Skip profile lookups and run the username/velocity analysis only (fastest)",
    )
    parser.add_argument("--max-stars", type=int, help="Maximum stargazers to collect")
    parser.add_argument("--max-users", type=int, help="Maximum profiles to look up in deep mode")
    parser.add_argument(
        "--no-cache", action="store_true", help="Always run a fresh analysis, ignoring stored results"
    )
    parser.add_argument("--cache-dir", help="Directory for stored results (default: ./cache)")
    parser.add_argument(
        "--plot", help="Save star history plot of the collected sample to file path (e.g., plot.png)"
    )
    return parser


def main(argv=None):
    """Command-line entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logger.setLevel(logging.DEBUG)
        logging.getLogger("urllib3").setLevel(logging.INFO)

    for flag, value in (("--max-stars", args.max_stars), ("--max-users", args.max_users)):
        if value is not None and value <= 0:
            logger.error(f"{flag} must be a positive integer.")
            sys.exit(1)

    config = StarSentryConfig.from_env(
        token=args.token,
        cache_dir=args.cache_dir,
        max_stars=args.max_stars,
        max_users=args.max_users,
        show_progress=True,
    )

    try:
        engine = StarSentry(config)
        run = engine.run_analysis(
            args.owner_repo, deep=not args.basic, use_cache=not args.no_cache
        )
        final_report_str = engine.generate_report(run, format_str=args.format)

        if args.plot:
            if run.stargazers:
                timeline = StarTimeline(run.stargazers, run.analysis.timeline)
                timeline.plot(args.plot, title=f"Star History for {run.repository.full_name} (sample)")
            else:
                logger.warning(
                    "No collected stargazers to plot (stored result reused or empty repository). "
                    "Use --no-cache to collect a fresh sample."
                )

        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(final_report_str)
            logger.info(f"Report saved to {args.output}")
        else:
            sys.stdout.write(final_report_str + "\n")

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user.")
        sys.exit(130)
    except ValueError as e:
        logger.error(f"Invalid repository reference: {e}. Use 'owner/repo' or a full GitHub URL.")
        sys.exit(1)
    except ApiError as e:
        logger.error(f"Analysis failed: {e}", exc_info=args.verbose)
        if not args.verbose:
            logger.error("Run with -v or --verbose for detailed traceback.")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Could not write output: {e}", exc_info=args.verbose)
        if not args.verbose:
            logger.error("Run with -v or --verbose for detailed traceback.")
        sys.exit(1)


if __name__ == "__main__":
    main()
