from pathlib import Path

from prefect import flow, get_run_logger, task
from prefect.futures import wait

from cyclone_swi import BaseETL, IndexETL
from cyclone_swi.settings import ArchiveSettings
from cyclone_swi.utils.utils import generate_task_run_name


@task(name="Extract", task_run_name=generate_task_run_name("Extract"))
def extract_task(etl: BaseETL, source: str) -> list[dict]:
    records = etl.extract(source)
    get_run_logger().info("Extracted %d record(s) from %s", len(records), source)
    return records


@task(name="Transform", task_run_name=generate_task_run_name("Transform"))
def transform_task(etl: BaseETL, raw_data: list[dict]) -> list:
    return etl.transform(raw_data)


@task(name="Load", task_run_name=generate_task_run_name("Load"))
def load_task(etl: BaseETL, transformed_data: list) -> None:
    etl.load(transformed_data)
    get_run_logger().info("Loaded %d snapshot(s)", len(transformed_data))


@flow
def build_index_flow(archive_root: str | None = None, index_path: str | None = None):
    settings = ArchiveSettings()
    etl = IndexETL(
        archive_root=Path(archive_root) if archive_root else settings.archive_root,
        index_path=Path(index_path or settings.index_path),
        satellite_tolerance=settings.satellite_tolerance,
    )

    sources = [settings.data_dir]
    catalog = settings.satellite_catalog
    if catalog.startswith(("http://", "https://")) or (etl.archive_root / catalog).exists():
        sources.append(catalog)
    else:
        get_run_logger().warning("Satellite catalog %s not found, indexing without images", catalog)

    # Extract trajectories and satellite catalog in parallel
    futures_extract = extract_task.map([etl] * len(sources), sources)
    wait(futures_extract)
    raw_data = [record for f in futures_extract for record in f.result()]

    snapshots = transform_task(etl, raw_data)
    load_task(etl, snapshots)


if __name__ == "__main__":
    build_index_flow()
