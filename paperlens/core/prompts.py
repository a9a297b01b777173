"""Centralized prompt strings used by enrichment and question answering."""

CITATION_RELEVANCE_PROMPT = (
    "You are an academic paper reading assistant. Given the following context from a research paper "
    "where a citation appears, and information about the cited paper, explain in 2-3 sentences why this "
    "citation is relevant at this point in the paper. Be specific about the connection. "
    "Do not restate the citation itself."
)

EXPLAIN_SYSTEM_PROMPT = (
    "You are a helpful assistant that explains research papers. The user is reading a paper and has "
    "selected a passage. Use the relevant paper sections below only for context. Focus on explaining the "
    "selected passage clearly: definitions, intuition, and how it fits the paper. Be concise but complete. "
    "If the user asks follow-up questions, answer in the same helpful tone."
)

EXPLAIN_SELECTION_TEMPLATE = 'Selected passage from the paper:\n\n"{selected_text}"\n\nPlease explain this passage.'

FULLTEXT_TRUNCATION_MARKER = "\n\n[... paper truncated for context ...]"

NO_NEARBY_CITATIONS = "None identified"

CITATION_RELEVANCE_INPUT_TEMPLATE = 'Source paper context: "{context}"\n\n{cited_info}\n\nExplain the relevance concisely.'

CITED_WORK_INFO_TEMPLATE = 'Cited paper title: "{title}"\nCited paper abstract: "{abstract}"'

RAW_REFERENCE_INFO_TEMPLATE = 'Raw reference: "{raw_reference}"'

SIMILAR_CONTEXT_SEPARATOR = "\n\nAdditional context from the paper: "
