import json

import pytest

from azure_metrics.client.decoder import ResponseDecoder
from azure_metrics.domain.exceptions import DecodeError

DEFINITIONS = {
    "value": [
        {
            "id": "/subscriptions/s/resourceGroups/rg/providers/x/metricdefinitions/Ingress",
            "resourceId": "/subscriptions/s/resourceGroups/rg/providers/x",
            "name": {"value": "Ingress", "localizedValue": "Ingress bytes"},
            "unit": "Bytes",
            "primaryAggregationType": "Total",
            "supportedAggregationTypes": ["Total", "Average"],
            "isDimensionRequired": False,
            "dimensions": [{"value": "ApiName", "localizedValue": "API name"}],
            "metricAvailabilities": [
                {"timeGrain": "PT1M", "retention": "P30D"},
                {"timeGrain": "PT1H", "retention": "P30D"},
            ],
            "category": "Transaction",
        }
    ]
}

VALUES = {
    "cost": 0,
    "timespan": "2024-03-01T11:50:00Z/2024-03-01T11:55:00Z",
    "interval": "PT1M",
    "value": [
        {
            "id": "/subscriptions/s/.../metrics/Ingress",
            "type": "Microsoft.Insights/metrics",
            "name": {"value": "Ingress", "localizedValue": "Ingress"},
            "unit": "Bytes",
            "timeseries": [
                {
                    "metadatavalues": [],
                    "data": [
                        {"timeStamp": "2024-03-01T11:50:00Z", "total": 10.0, "average": 5.0},
                        {"timeStamp": "2024-03-01T11:51:00Z", "total": 12.0},
                    ],
                }
            ],
        }
    ],
}


@pytest.fixture
def decoder() -> ResponseDecoder:
    return ResponseDecoder()


def test_decode_definitions_ignores_unknown_fields(decoder):
    definitions = decoder.decode_definitions(json.dumps(DEFINITIONS).encode())

    assert len(definitions) == 1
    definition = definitions[0]
    assert definition.name.value == "Ingress"
    assert definition.name.display == "Ingress bytes"
    assert definition.primary_aggregation_type == "Total"
    assert definition.supported_aggregation_types == ("Total", "Average")
    assert definition.dimensions[0].localized_value == "API name"
    assert [a.time_grain for a in definition.metric_availabilities] == ["PT1M", "PT1H"]


def test_decode_metric_values(decoder):
    response = decoder.decode_metric_values(VALUES)

    assert response.error is None
    assert response.interval == "PT1M"
    series = response.value[0]
    assert series.unit == "Bytes"
    assert series.type == "Microsoft.Insights/metrics"
    assert [sample.total for sample in series.samples] == [10.0, 12.0]
    assert series.samples[0].average == 5.0
    assert series.samples[1].average is None


def test_decode_metric_values_with_embedded_error(decoder):
    response = decoder.decode_metric_values(
        {"error": {"code": "BadRequest", "message": "Invalid aggregation"}}
    )

    assert response.value == ()
    assert response.error.code == "BadRequest"


def test_missing_required_field_reports_location(decoder):
    payload = {"value": [{"name": {"value": "Ingress"}}]}

    with pytest.raises(DecodeError) as excinfo:
        decoder.decode_definitions(payload, context={"resource": "/rg/x"})

    context = excinfo.value.context
    assert context["kind"] == "metric_definitions"
    assert context["resource"] == "/rg/x"
    assert any(error.startswith("value.0.id") for error in context["errors"])


def test_wrong_type_raises_decode_error(decoder):
    with pytest.raises(DecodeError):
        decoder.decode_metric_values({"value": "not-a-list"})


def test_invalid_json_raises_decode_error(decoder):
    with pytest.raises(DecodeError) as excinfo:
        decoder.decode_batch(b"{not json")

    assert excinfo.value.context["kind"] == "batch"


def test_decode_batch_requires_status_code(decoder):
    with pytest.raises(DecodeError):
        decoder.decode_batch({"responses": [{"content": {}}]})
