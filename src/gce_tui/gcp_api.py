from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import compute_v1

from .models import FetchFailed, FetchFailedError, FetchSucceeded, InstanceRecord

logger = logging.getLogger(__name__)


def is_gcloud_available() -> bool:
    return shutil.which("gcloud") is not None


def short_zone(zone: str) -> str:
    """Return the trailing segment of a zone URL such as ``.../zones/us-central1-a``."""
    return zone.rstrip("/").rsplit("/", 1)[-1]


class InventorySource(Protocol):
    def list_instances(self, project_id: str) -> list[InstanceRecord]: ...


@dataclass(slots=True, frozen=True)
class SshTarget:
    record: InstanceRecord
    project_id: str
    extra_args: tuple[str, ...] = ()

    def build_ssh_command(self) -> list[str]:
        return [
            "gcloud",
            "compute",
            "ssh",
            self.record.name,
            "--zone",
            self.record.zone,
            "--project",
            self.project_id,
            *self.extra_args,
        ]


class ComputeInstancesSource:
    """Lists instances across every zone of a project with the Compute Engine API.

    The aggregated listing is paged and grouped by zone scope. All pages are
    drained before anything is returned; a failure on any page discards what
    was collected so far.
    """

    def list_instances(self, project_id: str) -> list[InstanceRecord]:
        request = compute_v1.AggregatedListInstancesRequest(project=project_id)
        records: list[InstanceRecord] = []
        try:
            with compute_v1.InstancesClient() as client:
                for _scope, scoped_list in client.aggregated_list(request=request):
                    for instance in scoped_list.instances:
                        records.append(InstanceRecord(name=instance.name, zone=short_zone(instance.zone)))
        except (api_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError, OSError) as error:
            raise FetchFailedError(f"failed to iterate over instances: {error}") from error
        return records


class DemoInventorySource:
    def list_instances(self, project_id: str) -> list[InstanceRecord]:
        return build_mock_instances()


class InventoryFetcher:
    def __init__(self, source: InventorySource) -> None:
        self.source = source

    def fetch(self, project_id: str) -> FetchSucceeded | FetchFailed:
        logger.info("Fetching instances for project %s.", project_id)
        try:
            records = self.source.list_instances(project_id)
        except FetchFailedError as error:
            logger.error("Failed to load instances for %s: %s", project_id, error.cause)
            return FetchFailed(cause=error.cause)
        except Exception as error:
            logger.exception("Unexpected failure listing instances for %s.", project_id)
            return FetchFailed(cause=str(error) or type(error).__name__)
        logger.info("Loaded %d instances from %s.", len(records), project_id)
        return FetchSucceeded(inventory=tuple(records))


def build_ssh_command(
    record: InstanceRecord,
    project_id: str,
    extra_args: Sequence[str] = (),
) -> list[str]:
    return SshTarget(record=record, project_id=project_id, extra_args=tuple(extra_args)).build_ssh_command()


def build_mock_instances() -> list[InstanceRecord]:
    return [
        InstanceRecord(name="demo-bastion", zone="us-central1-a"),
        InstanceRecord(name="demo-app-01", zone="us-central1-b"),
        InstanceRecord(name="demo-worker-01", zone="europe-west1-b"),
    ]
