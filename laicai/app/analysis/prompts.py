from __future__ import annotations

ANALYSIS_SYSTEM_PROMPT = (
    "你是一位专业的财务分析师，请对提供的财务报表进行全面分析。请严格按照以下JSON格式返回结果："
    '{"metrics":[{"name":"指标名称","value":"指标值","change":"同比变化百分比","type":"positive或negative"}],'
    '"analysis":"详细分析报告","stockCode":"股票代码"}。'
    "其中metrics包含核心财务指标，如营业收入、净利润、毛利率、净利率、资产负债率、ROE等；"
    "analysis包含详细的财务状况分析、投资建议、风险提示和未来发展机会；"
    "stockCode是该公司的股票代码（如：600000），无法确定时返回null。"
    '请注意：change字段必须明确包含"同比"字样，例如"同比+15.52%"或"同比-2.46%"。'
)

QA_SYSTEM_PROMPT = (
    "你是一位专业的财务分析师，请根据提供的财务报表内容回答用户的问题。"
    "请确保回答准确、专业，并基于提供的财报数据。"
)


def truncate_report(content: str, max_chars: int) -> str:
    text = content or ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def build_analysis_prompt(file_name: str, content: str, max_chars: int) -> str:
    return f"请分析以下财务报表内容，文件名为{file_name}：\n\n{truncate_report(content, max_chars)}"


def build_qa_prompt(question: str, report_content: str, max_chars: int) -> str:
    return (
        "请根据以下财务报表内容回答问题：\n\n"
        f"财报内容：{truncate_report(report_content, max_chars)}\n\n"
        f"用户问题：{question}"
    )
