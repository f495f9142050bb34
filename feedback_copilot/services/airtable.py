"""
airtable.py
-----------

Read-only Airtable client used to populate the assignment and student
profile pickers.

Airtable returns at most 100 records per page; `list_records` follows the
`offset` cursor until the provider stops returning one.
"""

import requests

from .base import ServiceBase
from ..core.errors import ConfigurationError, UpstreamError

AIRTABLE_URL = "https://api.airtable.com/v0/{base_id}/{table}"
MISSING_CONFIG_MESSAGE = (
    "Airtable configuration is missing. Please set AIRTABLE_API_KEY and "
    "AIRTABLE_BASE_ID in .env file."
)


class AirtableClient(ServiceBase):
    """Fetches homework and profile records from Airtable."""

    def __init__(self, settings=None, session: requests.Session | None = None):
        super().__init__(settings)
        self.session = session or requests.Session()

    def _get_headers(self) -> dict:
        """Get standard Airtable headers"""
        return {
            "Authorization": f"Bearer {self.settings.airtable_api_key}",
            "Content-Type": "application/json",
        }

    def list_records(self, table: str) -> list[dict]:
        """
        Fetch every record of `table`, following pagination.

        Raises:
            ConfigurationError: API key or base id not configured.
            UpstreamError: Airtable answered with a non-success status.
        """
        if not self.settings.airtable_configured:
            raise ConfigurationError(MISSING_CONFIG_MESSAGE)

        url = AIRTABLE_URL.format(base_id=self.settings.airtable_base_id, table=table)
        records: list[dict] = []
        offset = None
        pages = 0

        while True:
            params = {"offset": offset} if offset else None
            response = self.session.get(
                url,
                headers=self._get_headers(),
                params=params,
                timeout=self.settings.request_timeout,
            )
            if not response.ok:
                self.logger.error("Airtable API error: %s %s", response.status_code, response.text)
                raise UpstreamError(
                    f"Failed to fetch from Airtable: {response.reason}",
                    status_code=response.status_code,
                )

            data = response.json()
            records.extend(data.get("records", []))
            pages += 1
            offset = data.get("offset")
            if not offset:
                break

        self.logger.info("Fetched %d records from %s in %d page(s)", len(records), table, pages)
        return records

    def list_homeworks(self) -> list[dict]:
        records = self.list_records(self.settings.airtable_table_name)
        return [
            {
                "id": record["id"],
                "name": record.get("fields", {}).get("Homework_name") or "Untitled",
                "details": record.get("fields", {}).get("Homework_details") or "",
            }
            for record in records
        ]

    def list_profiles(self) -> list[dict]:
        records = self.list_records(self.settings.airtable_profiles_table)
        return [
            {
                "id": record["id"],
                "profile": record.get("fields", {}).get("Profile") or "Untitled",
                "recommendations": record.get("fields", {}).get("Recommendations") or "",
            }
            for record in records
        ]
