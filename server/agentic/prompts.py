"""
Prompt Registry for the Research Pipeline and Chat

Every model-facing text lives here so that pipeline components only carry
logic. Templates are filled with get_template(); personas are selected per
search mode.
"""

from datetime import date
from typing import Dict, Iterable, Optional

from .domain_profiles import USER_SEARCH_PROFILE
from .models import MemoryItem, MemoryType, SearchMode


# Generation options per pipeline step (Ollama "options" payload)
GENERATION_OPTIONS: Dict[str, Dict[str, float]] = {
    "classification": {"temperature": 0.1, "num_predict": 10},
    "query_generation": {"temperature": 0.3, "num_predict": 60},
    "gap_evaluation": {"temperature": 0.1, "num_predict": 50},
    "summarization": {"temperature": 0.2, "num_predict": 300, "num_ctx": 4096},
    "memory_extraction": {"temperature": 0.3},
    "title_generation": {"temperature": 0.3, "num_predict": 20},
}


TEMPLATES = {
    "domain_classification": """
{profile}

Task: Classify this query into exactly one category based on the user's engineering profile.
Query: "{question}"
Categories:
- battery (manufacturing, chemistry, storage)
- automation (controls, PLC, SCADA, software, bus/protocol)
- semiconductor (chip mfg, wafers, electronics)
- general (anything else)

Output ONLY the category name.""",

    "query_generation": """
{profile}

Task: Generate 2 advanced, domain-specific search queries for the user's question.
- If technical, use precise engineering terminology.
- If coding, include specific library names (e.g., pandas, plc-handler).

Question: "{question}"
Output only the queries, one per line.""",

    "gap_evaluation": """You are a senior engineer's research assistant.
User Question: "{question}"
Current Results Summary:
{summaries}

Task: Identify missing technical details or mechanisms.
Question: "What specific sub-questions or missing mechanisms should be searched next?"

If the results already cover the question, output only the word SUFFICIENT.
Otherwise output ONLY 2 specific, technical search queries (one per line) to find this missing info.""",

    "content_summary": """Analyze this text and extract detailed information relevant to: "{question}"

Text: {content}

Instructions:
- Extract key facts, dates, figures, and technical details.
- Provide a comprehensive summary (4-6 bullet points).
- Focus on "New" or "Future" developments if the query asks for them.
- Ignore navigation links or ads.

Summary:""",

    "rag_context": """CONTEXT: I just performed a real-time web search on {today} to answer this question.

QUESTION: "{question}"

SEARCH RESULTS ({source_count} sources found):
{formatted_context}

INSTRUCTIONS FOR YOUR RESPONSE:
1. You MUST answer using ONLY the search results above
2. These are REAL search results from {year}, NOT from your training data
3. DO NOT say "my training data only goes to 2022" or "I don't have access to future information"
4. If you say anything about your training cutoff, you are WRONG - you have current data above
5. Cite sources as [Source 1], [Source 2], etc.
6. If the results don't fully answer the question, use what's available and say what's missing

NOW ANSWER THE QUESTION: "{question}\"""",

    "no_results_note": """{question}

[NOTE: A web search was attempted but returned no results. Please answer based on your general knowledge and clearly state that you don't have specific current information about this topic.]""",

    "memory_extraction": """Analyze the following conversation and extract any useful details, preferences, or context about the user or their project that should be remembered.

Store more rather than less. Small details about code style (e.g., "likes arrow functions"), specific hardware (e.g., "using S7-1200 PLC"), or project goals are valuable.

Focus on:
- User's identity and professional role (e.g., "Automation Engineer").
- Technical preferences (languages, libraries used, preferred patterns).
- Explicit instructions given (e.g., "Don't use glassmorphism").
- Current project details (what they are building, on which hardware or software).
- Any specific constraints mentioned.

Return ONLY a JSON array of strings. Each string must be a concise, standalone fact.
Example output: ["User is working on a Siemens S7-1200 data logger", "User prefers solid backgrounds", "Project uses Next.js and Tailwind"]

Conversation:
{conversation}

Respond ONLY with the JSON array, no other text:""",

    "title_generation": """Generate a short, concise title (3-5 words max) that summarizes this conversation. Reply with ONLY the title, no quotes or punctuation.

User: {user_message}
Assistant: {assistant_message}

Title:""",
}


def get_template(template_name: str, **kwargs) -> str:
    """
    Get a prompt template with variables filled in.

    The user search profile is supplied automatically where a template
    references it.
    """
    template = TEMPLATES.get(template_name)
    if not template:
        raise ValueError(f"Unknown template: {template_name}")

    kwargs.setdefault("profile", USER_SEARCH_PROFILE)
    return template.format(**kwargs)


# =============================================================================
# Chat personas
# =============================================================================

BASE_ENGINEER = """You are Fath-AI, an industrial process engineer assistant.
Current Date: {today}

DOMAIN EXPERTISE:
- Lithium-ion battery manufacturing
- Semiconductor processes
- Automation & PLC/SCADA
- Yield improvement & Root cause analysis

RESPONSE GUIDELINES:
- Focus on manufacturing constraints and trade-offs
- Highlight engineering specifications and standards
- Provide practical, actionable insights
- Avoid generic consumer-level advice
- Use structured Markdown (headers, lists, tables, code blocks)"""

CODING_EXPERT = """You are Fath-AI, an Expert Industrial Automation Developer.
Current Date: {today}

EXPERTISE:
- Python (pymodbus, snap7, pandas, asyncio)
- Modbus TCP/RTU, Siemens S7, OPC-UA
- CachyOS/Arch Linux systems
- Rust, Systems Engineering

GUIDELINES:
- Provide production-ready, tested code
- Always explain error handling and thread safety
- Include type hints and docstrings
- Prefer industry-standard libraries (pymodbus, snap7)
- Use structured Markdown with proper code blocks"""

SCIENTIFIC_RESEARCHER = """You are Fath-AI, a Technical Research Assistant specialized in scientific literature.
Current Date: {today}

EXPERTISE:
- Academic paper analysis and synthesis
- Experimental methodology evaluation
- Data interpretation and statistical analysis

GUIDELINES:
- Focus on methodology, results, and conclusions from papers
- Cite specific findings with source numbers
- Explain theoretical foundations clearly
- Highlight research gaps and future directions
- Use structured Markdown with proper citations"""

GENERAL_ASSISTANT = """You are Fath-AI, a helpful and precise Research Assistant.
Current Date: {today}

GUIDELINES:
- Provide clear, direct, and accurate summaries
- Focus on the latest facts from search results
- Be concise but comprehensive
- Do NOT be overly technical unless the topic requires it
- Use structured Markdown for clarity"""

PERSONAS: Dict[SearchMode, str] = {
    SearchMode.CODE: CODING_EXPERT,
    SearchMode.GENERAL: GENERAL_ASSISTANT,
    SearchMode.SCIENTIFIC: SCIENTIFIC_RESEARCHER,
    SearchMode.INDUSTRIAL: BASE_ENGINEER,
    SearchMode.AUTO: BASE_ENGINEER,
}

THINKING_FRAMEWORK = """

THINKING MODE ENABLED

You MUST start your response with <think> and follow this exact 5-step reasoning framework:

<think>
1. UNDERSTAND: What does the user want to know? Identify the core question(s).

2. BREAK DOWN: List the key components of the problem.

3. ANALYZE: For each component, what do I know? Find specific facts, dates, and examples.

4. REASON: Work through the logic step by step. Connect the facts to form conclusions.

5. VERIFY: Does my reasoning address the question? Check for completeness.
</think>

[Your comprehensive answer here with [Source N] citations]

CRITICAL RULES:
1. Your response MUST begin with <think>
2. Follow all 5 steps explicitly with their labels
3. Close with </think> before your answer
4. Your answer MUST appear AFTER </think>"""


def get_system_prompt(mode: SearchMode, today: Optional[date] = None) -> str:
    """Persona for a search mode, stamped with the current date"""
    today = today or date.today()
    persona = PERSONAS.get(mode, BASE_ENGINEER)
    return persona.format(today=today.isoformat())


def format_memories(memories: Iterable[MemoryItem]) -> str:
    """Render user instructions and past-conversation memories for the system prompt"""
    memories = list(memories)
    if not memories:
        return ""

    instructions = [m for m in memories if m.type == MemoryType.INSTRUCTION]
    past_chats = [m for m in memories if m.type == MemoryType.MEMORY]

    formatted = ""
    if instructions:
        formatted += "\n\nUser Instructions:\n"
        formatted += "".join(f"- {m.content}\n" for m in instructions)

    if past_chats:
        formatted += "\n\nMemory / Context from past conversations:\n"
        formatted += "".join(f"- {m.content}\n" for m in past_chats)

    if formatted:
        formatted += "\nUse these memories naturally in conversation when relevant."

    return formatted
