from __future__ import annotations

import json
from collections.abc import Sequence

from hardshipdocs.domain.models.classification import ClassificationRecord
from hardshipdocs.domain.models.transaction import StatementVariant

PAGE_SEPARATOR = "\n-------\n"

PAGE_CATEGORIES: tuple[str, ...] = (
    "Financial hardship Kiwisaver withdrawal form",
    "Bank account statement",
    "Kiwisaver statement",
    "Credit card statement",
    "Identification method",
    "Statutory declaration",
    "A letter from WINZ advising the breakdown of any benefit amount paid to you.",
    "A letter from WINZ declining your request for WINZ financial assistance",
    "Evidence of unexpected expenses",
    "Evidence of a debt payment plan",
    "A letter from a lending institution, who have declined a request from you for a financial loan.",
    "A payslip",
    "A letter providing evidence of a change of employment or income",
    "A rental agreement",
    "A rent arrears notice",
    "A mortgage or other payment arrears notice",
    "A mortgage statement",
    "A loan statement",
    "Other supporting documentation",
)

STATEMENT_CATEGORIES: tuple[str, ...] = (
    "Bank account statement",
    "Credit card statement",
    "Identification method",
    "Statutory declaration",
    "A letter from WINZ advising the breakdown of any benefit amount paid to you.",
    "A letter from WINZ declining your request for WINZ financial assistance",
    "Other supporting documentation",
    "Evidence of a debt payment plan",
    "A letter from a lending institution, who have declined a request from you for a financial loan.",
    "A payslip",
    "A copy of a letter from your employer informing you that your hours have been reduced",
    "A redundancy notice",
    "A rental agreement",
    "A rent arrears notice",
    "A mortgage arrears notice",
    "A mortgage statement",
    "A loan statement",
)


def join_pages(page_texts: Sequence[str]) -> str:
    return PAGE_SEPARATOR.join(page_texts)


def build_page_classification_prompt(
    last_page_summary: ClassificationRecord | None,
    used_filenames: Sequence[str],
    text: str,
) -> str:
    summary = (
        json.dumps(last_page_summary.to_payload(), ensure_ascii=False, indent=2)
        if last_page_summary is not None
        else "No previous summary available"
    )
    categories = "\n".join(PAGE_CATEGORIES)

    return f"""The following text is a number of pages from a concatenated PDF. The objective is to separate the PDF into individual documents and categorize them.
Your response should be a JSON array of objects matching the following schema:
{{
    "pageNumber": {{{{ current page number }}}},
    "category": "{{{{ choose from the list below }}}}",
    "confidence": "{{{{ an integer between 0 and 5 indicating the confidence level of the categorisation }}}}",
    "filename": "{{{{ rules explained below }}}}",
    "summary": "{{{{ An independent description of the content of the page. This must not relate to or use data from any of the other pages in the batch. }}}}",
    "statedPageNumber": "{{{{ The page number as stated in the text of the page, if any, and the total number of pages stated, if any }}}}"
}}

Respond with the JSON array only.

If the text of the page contains numbering ("eg. Page 1 of 5"), this should be used as the primary indication of whether a page is part of a new document.

If the page number matches the "last page summary from previous run", it's there just for context to determine whether the next page is a new document or not -- if this is true, don't include this page in the output and use it only for context.

If the page is part of the previous document, you must use the same filename for it. If it's the start of a new document, choose a descriptive, semantic name for the pdf document which hasn't been used before -- avoid just using category_1, category_2 etc. Where a file appears to be a statement for a date range, describe the months covered in the filename, and use the bank name and account type rather than "Bank".

Determine the category from among the following:

{categories}

Last page summary from previous run:
{summary}

Previously used filenames:
{json.dumps(list(used_filenames), ensure_ascii=False, indent=2)}

---
{text}
"""


def build_statement_extraction_prompt(variant: StatementVariant, text: str) -> str:
    credit = variant.credit_column.lower()
    debit = variant.debit_column.lower()
    if variant.include_taxonomy:
        category_block = (
            "Analyze the following text and determine the category from among the following:\n\n"
            + "\n".join(STATEMENT_CATEGORIES)
            + '\n\nThe response JSON should contain the category of the document in a field called "category".'
        )
        skip_rule = "a transfer or credit card payment, or an opening or closing balance row"
    else:
        category_block = (
            "Analyze the following text and respond with a JSON object containing the following fields.\n\n"
            'Put a short description of the kind of document in a field called "category", '
            'for example "Bank account statement" or "Credit card statement".'
        )
        skip_rule = "a transfer or a payment into a credit card account, or an opening or closing balance row"

    return f"""Respond in JSON format.

{category_block}

If it's a bank/credit card statement, add the following fields:
1. startingBalance
2. closingBalance
3. csv: A CSV formatted string with headers: Date, Transaction Detail, {variant.credit_column}, {variant.debit_column}, Skip. Enclose transaction detail in double quotes if it contains commas. Format {credit} and {debit} as floats with no $ or , characters. Format dates as YYYY-MM-DD.
Skip should be true if the transaction is {skip_rule}.

---
{text}
"""


def build_html_report_prompt(records: Sequence[ClassificationRecord]) -> str:
    payload = json.dumps([record.to_payload() for record in records], ensure_ascii=False, indent=2)
    return f"""The following is a JSON summary of the analysis results and the newly created files based on the split:
{payload}

Please produce an HTML report listing each file name, the category and page range of the file, and a summary of the content, for all files. Respond with the HTML document only.
"""
