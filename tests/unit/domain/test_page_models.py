import pytest

from apiwarden.domain.models.page import AggregateResult, Column, Order, PageRequest, PageResponse, PageWindow, Search


def test_payload_renders_window_and_extra_fields():
    request = PageRequest(
        columns=[Column(data="name"), Column(data="email", orderable=False)],
        order=[Order(column="1", dir="asc")],
        draw="3",
        length=75,
        extra={"appType": "GoogleDrive"},
    )

    payload = request.to_payload(PageWindow(start=150, length=30))

    assert payload["draw"] == "3"
    assert payload["start"] == 150
    assert payload["length"] == 30
    assert payload["order"] == [{"column": "1", "dir": "asc"}]
    assert payload["columns"][1] == {
        "data": "email",
        "name": "",
        "searchable": True,
        "orderable": False,
        "search": {"value": "", "regex": False},
    }
    assert payload["search"] == {"value": "", "regex": False}
    assert payload["appType"] == "GoogleDrive"


def test_payload_defaults_to_initial_window():
    request = PageRequest(start=10, length=20, search=Search(value="ann"))
    payload = request.to_payload()
    assert (payload["start"], payload["length"]) == (10, 20)
    assert payload["search"]["value"] == "ann"
    assert request.initial_window() == PageWindow(start=10, length=20, total_known=None)


def test_response_decodes_records():
    page = PageResponse.from_dict(
        {"draw": 1, "recordsTotal": 2, "recordsFiltered": 2, "data": [{"v": 1}, {"v": 2}]},
        record_decoder=lambda r: r["v"],
    )
    assert page.data == [1, 2]
    assert page.records_total == 2
    assert page.draw == "1"


@pytest.mark.parametrize("payload, error", [
    ([], TypeError),
    ({"recordsTotal": 1, "recordsFiltered": 1}, TypeError),
    ({"recordsTotal": "1", "recordsFiltered": 1, "data": []}, TypeError),
    ({"recordsTotal": True, "recordsFiltered": 1, "data": []}, TypeError),
    ({"recordsTotal": -1, "recordsFiltered": 0, "data": []}, ValueError),
    ({"recordsFiltered": 0, "data": []}, KeyError),
])
def test_response_rejects_malformed_envelopes(payload, error):
    with pytest.raises(error):
        PageResponse.from_dict(payload, record_decoder=dict)


def test_aggregate_length():
    assert len(AggregateResult(records=[1, 2, 3], records_total=3)) == 3
