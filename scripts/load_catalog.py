"""
Load the catalog once and report what happened.

This script:
1) Builds the stores and wires the pipeline
2) Runs ingestion over every source in declared order
3) Logs the per-source report and the resulting store sizes
4) Optionally runs a natural-language search against the loaded catalog

Usage:
    python -m scripts.load_catalog
    python -m scripts.load_catalog "crime movies from the 90s"

Set FILM_CATALOG_DATA_DIR to load sources from another directory.
"""

import sys  # optional query from the command line

from loguru import logger  # console logging

from film_catalog.config import configure_logging, get_settings
from film_catalog.registry import Registry


def main(argv=None):
	argv = sys.argv[1:] if argv is None else argv
	settings = get_settings()
	configure_logging(settings.log_level)

	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info("Load Film Catalog")
	logger.info("=" * 60)

	# 1) Build and wire
	logger.info("[1/3] Building stores...")
	registry = Registry(settings).wire()

	# 2) Ingest
	logger.info("[2/3] Running ingestion...")
	report = registry.load()
	for source in report.sources:
		status = 'missing' if not source.found else 'ok'
		logger.info(
			f"  {source.name:<10} {status:<8} added={source.added:<4} skipped={source.skipped:<4}"
			f"{' fallback=' + str(source.fallback_added) if source.used_fallback else ''}"
		)

	# 3) Sizes
	logger.info("[3/3] Store sizes")
	logger.info(f"  movies={registry.catalog.movies.count()} series={registry.catalog.series.count()}")
	logger.info(f"  actors={registry.people.actors.count()} directors={registry.people.directors.count()}")
	logger.info(f"  accounts={registry.accounts.count()}")

	if argv:
		query = ' '.join(argv)
		results = registry.engine.search_text(query)
		logger.info(f"\nQuery: {query} -> {len(results)} results")
		for item in results[:10]:
			logger.info(f"  {item.title} ({item.effective_year}) rating={item.rating}")

	# Footer
	logger.info(report.summary())
	logger.info("=" * 60)


if __name__ == '__main__':
	main()  # invoke loader
