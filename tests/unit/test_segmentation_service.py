import json

from hardshipdocs.application.services.segmentation_service import SegmentationService, plan_windows
from hardshipdocs.core.errors import RemoteCallError
from hardshipdocs.domain.models.page import Page


class FakeCompletion:
    def __init__(self, responses: list[object]) -> None:
        self.responses = list(responses)
        self.prompts: list[str] = []

    def complete(self, prompt: str, *, max_tokens: int = 15000) -> str:
        self.prompts.append(prompt)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _pages(count: int) -> list[Page]:
    return [Page(page_number=n, lines=(f"line for page {n}",)) for n in range(1, count + 1)]


def _classify(numbers, filename: str, category: str = "Bank account statement") -> str:
    return json.dumps(
        [
            {
                "pageNumber": n,
                "category": category,
                "confidence": 5,
                "filename": filename,
                "summary": f"summary of page {n}",
                "statedPageNumber": None,
            }
            for n in numbers
        ]
    )


def test_window_plan_uses_size_ten_and_stride_nine() -> None:
    assert [[p.page_number for p in w] for w in plan_windows(_pages(3))] == [[1, 2, 3]]
    assert len(plan_windows(_pages(10))) == 1
    windows = plan_windows(_pages(19))
    assert [(w[0].page_number, w[-1].page_number) for w in windows] == [(1, 10), (10, 19)]
    windows = plan_windows(_pages(25))
    assert [(w[0].page_number, w[-1].page_number) for w in windows] == [(1, 10), (10, 19), (19, 25)]
    assert plan_windows([]) == []


def test_short_document_is_one_window() -> None:
    completion = FakeCompletion([_classify([1, 2, 3], "identity_doc.pdf", "Identification method")])

    result = SegmentationService(completion).segment(_pages(3))

    assert [r.page_number for r in result.records] == [1, 2, 3]
    assert {r.filename for r in result.records} == {"identity_doc.pdf"}
    assert result.windows_total == 1
    assert result.complete
    assert "No previous summary available" in completion.prompts[0]


def test_boundary_page_is_emitted_once_from_first_window() -> None:
    completion = FakeCompletion(
        [
            _classify(range(1, 11), "ANZ_Everyday_Jan_2024.pdf"),
            # The model re-emits the context page despite being told not to.
            _classify(range(10, 13), "ANZ_Everyday_Jan_2024.pdf").replace(
                "summary of page 10", "re-emitted page 10"
            ),
        ]
    )

    result = SegmentationService(completion).segment(_pages(12))

    numbers = [r.page_number for r in result.records]
    assert numbers == list(range(1, 13))
    page_ten = [r for r in result.records if r.page_number == 10]
    assert len(page_ten) == 1
    assert page_ten[0].summary == "summary of page 10"


def test_state_is_carried_into_the_next_prompt() -> None:
    completion = FakeCompletion(
        [
            _classify(range(1, 6), "payslip_march.pdf", "A payslip")[:-1]
            + ", "
            + _classify(range(6, 11), "Westpac_Credit_Card_Feb_2024.pdf", "Credit card statement")[1:],
            _classify([11], "Westpac_Credit_Card_Feb_2024.pdf", "Credit card statement"),
        ]
    )

    result = SegmentationService(completion).segment(_pages(11))

    second_prompt = completion.prompts[1]
    assert "Page 10: \n\nline for page 10" in second_prompt
    assert "Page 11: \n\nline for page 11" in second_prompt
    assert "Page 9:" not in second_prompt
    assert '"pageNumber": 10' in second_prompt
    assert '"payslip_march.pdf",\n  "Westpac_Credit_Card_Feb_2024.pdf"' in second_prompt
    assert result.used_filenames == ["payslip_march.pdf", "Westpac_Credit_Card_Feb_2024.pdf"]
    assert [r.page_number for r in result.records] == list(range(1, 12))


def test_pages_in_a_window_are_separated() -> None:
    completion = FakeCompletion([_classify([1, 2], "a.pdf")])

    SegmentationService(completion).segment(_pages(2))

    assert "line for page 1\n-------\nPage 2: " in completion.prompts[0]


def test_failure_returns_partial_result_without_retry() -> None:
    completion = FakeCompletion(
        [
            _classify(range(1, 11), "first.pdf"),
            RemoteCallError("HTTP 429", status=429),
            _classify(range(19, 21), "never.pdf"),
        ]
    )

    result = SegmentationService(completion).segment(_pages(20))

    assert [r.page_number for r in result.records] == list(range(1, 11))
    assert result.windows_total == 3
    assert result.windows_completed == 1
    assert result.error is not None and "HTTP 429" in result.error
    assert not result.complete
    assert len(completion.prompts) == 2


def test_malformed_json_stops_segmentation() -> None:
    completion = FakeCompletion(["I could not read these pages."])

    result = SegmentationService(completion).segment(_pages(4))

    assert result.records == []
    assert result.error is not None
