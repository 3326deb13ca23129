# ==============================================================================
# AI SUMMARY SERVICE
# ==============================================================================
# Optional Markdown briefing over recent ledger entries or orders, produced
# by any OpenAI-compatible chat-completions endpoint.
#
# Never raises: every failure becomes a short message shown in place of the
# briefing.
# ==============================================================================

import json
import logging
from typing import Any, List, Optional

from openai import OpenAI, OpenAIError

from factory_erp.models import Order, Transaction

logger = logging.getLogger(__name__)

CONTEXT_FINANCE = 'FINANCE'
CONTEXT_OPERATIONS = 'OPERATIONS'

RECENT_RECORDS = 20

MSG_NO_KEY = "API Key 未配置。请检查环境变量。"
MSG_UNAVAILABLE = "AI 分析服务暂时不可用，请稍后再试。"
MSG_EMPTY = "无法生成分析结果。"

FINANCE_PROMPT = """作为一位资深的工厂财务顾问，请分析以下财务交易数据（JSON格式）。
请提供一份简明的财务健康报告，包括：
1. 收入与支出的主要趋势。
2. 潜在的成本控制建议。
3. 现金流状况的简要评估。

数据: {data}

请用中文回答，格式使用Markdown，重点突出。不要罗列数据，而是提供洞察。"""

OPERATIONS_PROMPT = """作为一位工厂生产运营经理，请分析以下订单数据（JSON格式）。
请提供一份生产运营简报，包括：
1. 当前订单状态分布及其潜在瓶颈（例如积压的待处理订单）。
2. 主要客户分析。
3. 针对交货日期的紧迫性提醒。

数据: {data}

请用中文回答，格式使用Markdown，重点突出。"""


class AIService:
    """Client for the business briefing."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = 'gpt-4o-mini',
        base_url: Optional[str] = None,
        client: Any = None
    ):
        """
        Args:
            api_key: Endpoint key; without it no request is made
            model: Chat model name
            base_url: OpenAI-compatible endpoint, None for the default one
            client: Pre-built client (tests)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
            logger.info("Initialized AI client (model %s, endpoint %s)",
                        self.model, self.base_url or 'default')
        return self._client

    def build_prompt(
        self,
        orders: List[Order],
        transactions: List[Transaction],
        context: str
    ) -> str:
        """Prompt over the last 20 records of the chosen collection."""
        if context == CONTEXT_FINANCE:
            data = [t.to_dict() for t in transactions[-RECENT_RECORDS:]]
            template = FINANCE_PROMPT
        else:
            data = [o.to_dict() for o in orders[-RECENT_RECORDS:]]
            template = OPERATIONS_PROMPT
        return template.format(data=json.dumps(data, ensure_ascii=False))

    def analyze_business_data(
        self,
        orders: List[Order],
        transactions: List[Transaction],
        context: str = CONTEXT_FINANCE
    ) -> str:
        """
        Ask the model for a briefing.

        Args:
            orders: All orders (stored order)
            transactions: All ledger entries (stored order)
            context: 'FINANCE' or 'OPERATIONS'

        Returns:
            Markdown text, or a user-facing message when unavailable
        """
        if not self.api_key:
            return MSG_NO_KEY

        prompt = self.build_prompt(orders, transactions, context)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
            text = response.choices[0].message.content if response.choices else None
        except OpenAIError as e:
            logger.error("AI analysis failed (%s): %s", context, e)
            return MSG_UNAVAILABLE
        except Exception:
            # client construction (bad base_url) or a malformed response
            logger.exception("AI analysis failed (%s)", context)
            return MSG_UNAVAILABLE

        if not text:
            return MSG_EMPTY
        logger.info("AI analysis generated (%s, %d chars)", context, len(text))
        return text
