import json
import logging
from typing import Any, Dict

from app.models.packing import PackingList, TripDetails
from app.services.llm_service import TextGenerator

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def _string_list(description: str) -> Dict[str, Any]:
    return {"type": "ARRAY", "description": description, "items": {"type": "STRING"}}


# Gemini response schema for a packing list
PACKING_LIST_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "outfitSuggestions": {
            "type": "ARRAY",
            "description": "Outfit suggestions for every planned activity.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "activity": {
                        "type": "STRING",
                        "description": "Name of the activity as given in the prompt.",
                    },
                    "description": {
                        "type": "STRING",
                        "description": "Short description of the suggested outfit and why it fits.",
                    },
                    "outfit": {
                        "type": "ARRAY",
                        "description": "Clothing items that make up the outfit.",
                        "items": {"type": "STRING"},
                    },
                },
                "required": ["activity", "description", "outfit"],
            },
        },
        "baseClothing": _string_list(
            "Basic, business and casual clothing (shirts, trousers, underwear, suits). "
            "Do not repeat items from the outfit suggestions."
        ),
        "footwear": _string_list("Footwear suited to the activities and weather."),
        "toiletries": _string_list("Personal hygiene and cosmetics."),
        "accessoriesElectronics": _string_list("Accessories, electronics and other useful things."),
        "documentsMoney": _string_list("Important documents, money and cards."),
    },
    "required": [
        "outfitSuggestions",
        "baseClothing",
        "footwear",
        "toiletries",
        "accessoriesElectronics",
        "documentsMoney",
    ],
}


def build_prompt(details: TripDetails) -> str:
    """Create the packing prompt for one trip"""
    activity_lines = [
        f"- {activity.description} ({'daytime' if activity.time == 'day' else 'evening'} activity)"
        for activity in details.activities
    ]

    advanced_instructions = []
    if details.formality:
        advanced_instructions.append(
            f"- Adapt the clothing style to the requested level of formality: {details.formality.value}."
        )
    if details.lightLuggage:
        advanced_instructions.append(
            "- Focus on minimalism and suggest versatile, multi-purpose clothing so the luggage "
            "stays as light as possible. Reduce quantities wherever you can."
        )

    prompt_parts = [
        "You are an expert travel packing assistant. Create a detailed and practical packing list "
        "in English for a trip with the following details:",
        f"- Destination: {details.destination}",
        f"- Dates: from {details.startDate} to {details.endDate} ({details.duration} days)",
        "- Planned activities:",
        *activity_lines,
    ]
    if advanced_instructions:
        prompt_parts.append("- Additional instructions:")
        prompt_parts.extend(advanced_instructions)

    prompt_parts.extend([
        "",
        "Instructions:",
        "1. Analyze the destination and dates to predict the likely weather (temperature, rain, snow) "
        "and build that into your recommendations.",
        "2. Based on the weather, trip duration, planned activities and additional instructions, "
        "suggest an outfit for EVERY listed activity.",
        "3. Then create a comprehensive packing list grouped by category.",
        f"4. Suggest quantities where appropriate (e.g. \"Socks (x{details.duration})\"). "
        "If light luggage was requested, optimize the quantities.",
        "5. The entire output must be in English.",
        "6. Strictly follow the provided JSON schema. Fill every field with relevant items. "
        "If a category is not relevant, return an empty array.",
    ])

    return "\n".join(prompt_parts)


def parse_packing_list(response_content: str) -> PackingList:
    """Parse the model's text payload into a PackingList."""
    response_content = response_content.strip()
    try:
        data = json.loads(response_content)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse LLM response as JSON: {e}")
        logger.error(f"Response content (first 1000 chars): {response_content[:1000]}")
        raise
    return PackingList.model_validate(data)


class PackingListService:
    """Builds packing prompts, calls the text generator and maps the answer back"""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def generate_packing_list(self, details: TripDetails) -> PackingList:
        logger.info(
            f"Generating packing list for {details.destination}, {details.duration} days, "
            f"{len(details.activities)} activities"
        )
        prompt = build_prompt(details)
        content = await self.generator.generate(prompt, PACKING_LIST_SCHEMA)
        packing_list = parse_packing_list(content)
        logger.info(f"Packing list parsed with {len(packing_list.outfitSuggestions)} outfit suggestions")
        return packing_list
