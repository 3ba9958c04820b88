"""Basic scrape cycle using the built-in DI container and AZURE_* env vars."""

from azure_metrics.core.container import DIContainer


def main() -> None:
    with DIContainer.create_client() as client:
        definitions = client.get_metric_definitions()
        for resource, metrics in definitions.items():
            print(resource, [metric.name.value for metric in metrics])

        for result in client.collect():
            if not result.ok:
                print("Skipped:", result.query.target.resource, result.item.error)
                continue
            for series in result.item.content.value:
                latest = series.samples[-1] if series.samples else None
                print(series.name.value, series.unit, latest)


if __name__ == "__main__":
    main()
