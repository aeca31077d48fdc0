import fitz
import pytest

from services.errors import ErrorCode, ExtractionError
from services.pdf_processor import METHOD_PDF, PDFProcessor, extract_pdf_text

TIMETABLE_TEXT = (
    "Class 2EJ Timetable - Autumn Term\n"
    "Monday 9:00 - 9:30 Maths\n"
    "Monday 10:30 - 10:45 Break\n"
    "Monday 11:00 - 12:00 English\n"
)


def make_pdf(text):
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def test_extract_pdf_text():
    text, pages = extract_pdf_text(make_pdf(TIMETABLE_TEXT))

    assert pages == 1
    assert "Monday 9:00 - 9:30 Maths" in text


@pytest.mark.anyio
async def test_text_pdf_goes_to_llm(llm_client):
    result = await PDFProcessor(llm_client).process(make_pdf(TIMETABLE_TEXT))

    assert result.extraction_method == METHOD_PDF
    assert result.details == {"pages": 1}
    sent_text = llm_client.extract_from_text.await_args.args[0]
    assert "Monday 10:30 - 10:45 Break" in sent_text
    llm_client.extract_with_vision.assert_not_called()


@pytest.mark.anyio
@pytest.mark.parametrize("text", ["", "Timetable"])
async def test_scanned_pdf_fails_without_llm_call(llm_client, text):
    with pytest.raises(ExtractionError) as exc:
        await PDFProcessor(llm_client).process(make_pdf(text))

    assert exc.value.code == ErrorCode.PDF_PROCESSING_FAILED
    assert "scanned image" in exc.value.message
    llm_client.extract_from_text.assert_not_called()


@pytest.mark.anyio
async def test_pdf_text_of_exactly_fifty_chars_is_scanned(llm_client, monkeypatch):
    monkeypatch.setattr("services.pdf_processor.extract_pdf_text", lambda contents: ("x" * 50 + "\n", 1))

    with pytest.raises(ExtractionError) as exc:
        await PDFProcessor(llm_client).process(b"%PDF-stub")

    assert exc.value.code == ErrorCode.PDF_PROCESSING_FAILED
    llm_client.extract_from_text.assert_not_called()


@pytest.mark.anyio
async def test_pdf_text_of_fifty_one_chars_goes_to_llm(llm_client, monkeypatch):
    monkeypatch.setattr("services.pdf_processor.extract_pdf_text", lambda contents: ("x" * 51, 1))

    result = await PDFProcessor(llm_client).process(b"%PDF-stub")

    assert result.extraction_method == METHOD_PDF
    llm_client.extract_from_text.assert_awaited_once()


@pytest.mark.anyio
async def test_corrupt_pdf_fails(llm_client):
    with pytest.raises(ExtractionError) as exc:
        await PDFProcessor(llm_client).process(b"%PDF-1.4 definitely broken")

    assert exc.value.code == ErrorCode.PDF_PROCESSING_FAILED
    llm_client.extract_from_text.assert_not_called()


@pytest.mark.anyio
async def test_llm_failure_is_pdf_processing_failure(llm_client):
    llm_client.extract_from_text.side_effect = RuntimeError("rate limited")

    with pytest.raises(ExtractionError) as exc:
        await PDFProcessor(llm_client).process(make_pdf(TIMETABLE_TEXT))

    assert exc.value.code == ErrorCode.PDF_PROCESSING_FAILED
    assert exc.value.message == "rate limited"
