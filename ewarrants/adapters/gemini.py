"""Gemini Adapters

- GeminiReceiptAnalyzer: ReceiptAnalyzer ABC の実装（レシート画像 → 保証情報 JSON）
- GeminiWarrantyAssistant: WarrantyAssistant ABC の実装（getWarranties ツール付きチャット）

vertexai.init() はコンストラクタから分離されており、
呼び出し側（deps 等）が事前に初期化しておくこと。
"""

from __future__ import annotations

import datetime
import json
import logging

from vertexai.generative_models import (
    Content,
    FunctionDeclaration,
    GenerativeModel,
    Part,
    Tool,
)

from ewarrants.domain.models import SUGGESTED_CATEGORIES, ReceiptExtraction, SortOrder
from ewarrants.domain.ports import (
    ReceiptAnalyzer,
    WarrantyAssistant,
    WarrantyToolHandler,
)

logger = logging.getLogger(__name__)

GET_WARRANTIES_TOOL = "getWarranties"


class GeminiReceiptAnalyzer(ReceiptAnalyzer):
    """
    Gemini を使ったレシート解析実装。

    画像から商品名・購入日・保証期間（月）・カテゴリを抽出する。
    初期化済みの GenerativeModel インスタンスを受け取るため、テスト時のモック差し替えが容易。
    """

    def __init__(self, model: GenerativeModel) -> None:
        """
        Args:
            model: 初期化済みの GenerativeModel インスタンス。
                   呼び出し側で vertexai.init() を実行してから渡すこと。
        """
        if model is None:
            raise ValueError("model is required")
        self._model = model

    def extract(self, content: bytes, mime_type: str) -> ReceiptExtraction:
        """
        レシート画像を解析して保証情報を抽出。

        Raises:
            Exception: Gemini 呼び出しまたは JSON パースに失敗した場合
        """
        image_part = Part.from_data(data=content, mime_type=mime_type)
        response = self._model.generate_content(
            [self._build_prompt(), image_part],
            generation_config={
                "temperature": 0.1,
                "response_mime_type": "application/json",
            },
        )

        usage = getattr(response, "usage_metadata", None)
        if usage:
            logger.info(
                "Gemini token usage: input=%d, output=%d, total=%d",
                usage.prompt_token_count,
                usage.candidates_token_count,
                usage.total_token_count,
            )

        raw_json = parse_json_response(response.text)
        return self._convert_to_domain_model(raw_json)

    @staticmethod
    def _build_prompt() -> str:
        categories = ", ".join(SUGGESTED_CATEGORIES)
        return f"""
Analyze this receipt image. Your task is to extract specific details and generate a category.
1. Extract the primary product name.
2. Extract the purchase date in YYYY-MM-DD format.
3. Extract and calculate the warranty period in MONTHS. Look for terms like "warranty", "guarantee".
   - If it's in years (e.g., "1 year warranty"), convert it to months (e.g., 12).
   - If no warranty is found, return null for this field.
4. Generate a single, relevant category for the product from this list: [{categories}]. If no specific category from the list fits, use "Other".
Return the data as a clean JSON object with the keys: "productName", "purchaseDate", "warrantyMonths", and "category". Do not include markdown formatting.
"""

    @staticmethod
    def _convert_to_domain_model(raw_json: dict) -> ReceiptExtraction:
        """生の JSON 辞書を ReceiptExtraction に変換"""
        months = raw_json.get("warrantyMonths")
        try:
            warranty_months = int(months) if months is not None else None
        except (TypeError, ValueError):
            logger.warning("Invalid warrantyMonths: %s, using null", months)
            warranty_months = None

        purchase_date = raw_json.get("purchaseDate")
        if purchase_date:
            try:
                datetime.date.fromisoformat(str(purchase_date))
            except ValueError:
                logger.warning("Invalid purchaseDate: %s, using null", purchase_date)
                purchase_date = None

        return ReceiptExtraction(
            product_name=raw_json.get("productName") or None,
            purchase_date=str(purchase_date) if purchase_date else None,
            warranty_months=warranty_months,
            category=raw_json.get("category") or "Other",
        )


class GeminiWarrantyAssistant(WarrantyAssistant):
    """
    getWarranties ツールを持つ Gemini チャット実装。

    システム指示に「今日の日付」を含めるため、リクエストごとに GenerativeModel を組み立てる。
    """

    def __init__(self, model_name: str) -> None:
        """
        Args:
            model_name: Gemini モデル名（例: "gemini-2.5-flash"）
        """
        self._model_name = model_name

    def converse(
        self,
        message: str,
        history: list[dict],
        today: datetime.date,
        get_warranties: WarrantyToolHandler,
    ) -> str:
        """ユーザー発話に応答する。ツール呼び出しがあれば1回だけ実行して結果を返す"""
        model = GenerativeModel(
            self._model_name,
            tools=[build_warranty_tool()],
            system_instruction=(
                "You are a helpful and friendly AI assistant for a warranty tracking "
                f"app called eWarrants. Today's date is {today.strftime('%a %b %d %Y')}. "
                "When a user asks for their warranties, use the getWarranties tool. "
                "Do not guess or make up information. Be concise."
            ),
        )
        chat = model.start_chat(history=to_contents(history))
        response = chat.send_message(message)

        call = _first_function_call(response)
        if call is None:
            return response.text

        args = dict(call.args or {})
        logger.info("Assistant requested tool: name=%s, args=%s", call.name, args)
        if call.name != GET_WARRANTIES_TOOL:
            logger.warning("Unknown tool requested: %s", call.name)
            return response.text

        warranties = get_warranties(args)
        follow_up = chat.send_message(
            Part.from_function_response(
                name=GET_WARRANTIES_TOOL,
                response={"warranties": warranties},
            )
        )
        return follow_up.text


def build_warranty_tool() -> Tool:
    """getWarranties の関数宣言"""
    return Tool(
        function_declarations=[
            FunctionDeclaration(
                name=GET_WARRANTIES_TOOL,
                description="Get a list of the user's warranties. Can be filtered and sorted.",
                parameters={
                    "type": "object",
                    "properties": {
                        "category": {
                            "type": "string",
                            "description": "The category to filter by. Available categories are: "
                            + ", ".join(SUGGESTED_CATEGORIES),
                        },
                        "expiringWithinDays": {
                            "type": "number",
                            "description": "The number of days from today to check for expiring warranties.",
                        },
                        "sortBy": {
                            "type": "string",
                            "description": "The field to sort the warranties by. Use 'PURCHASE_DATE_ASC' "
                            "for oldest first, or 'PURCHASE_DATE_DESC' for newest first.",
                            "enum": [s.value for s in SortOrder],
                        },
                    },
                },
            )
        ]
    )


def to_contents(history: list[dict]) -> list[Content]:
    """クライアントの会話履歴（{role, parts: [{text}]}）を Content に変換"""
    contents: list[Content] = []
    for turn in history:
        role = turn.get("role")
        if role not in ("user", "model"):
            continue
        texts = [p.get("text", "") for p in turn.get("parts") or [] if isinstance(p, dict)]
        parts = [Part.from_text(t) for t in texts if t]
        if parts:
            contents.append(Content(role=role, parts=parts))
    return contents


def parse_json_response(response_text: str) -> dict:
    """
    Gemini のレスポンスをパース。

    Markdown コードブロックを除去して JSON として解釈する。
    """
    text = response_text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse JSON response: %s", e)
        logger.error("Raw response: %s", response_text)
        raise


def _first_function_call(response):
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    calls = getattr(candidates[0], "function_calls", None) or []
    return calls[0] if calls else None
