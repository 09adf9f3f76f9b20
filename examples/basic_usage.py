"""
Basic PagePixie usage example
Capture a page from extractor output, then refine the result through chat
"""

import asyncio
import os

from pagepixie import PagePixie, PagePixieConfig, CaptureCallbacks, CaptureStage


SAMPLE_PAGE = {
    "title": "How Sourdough Fermentation Works",
    "url": "https://example.com/sourdough-fermentation",
    "fullText": (
        "Sourdough bread rises thanks to a culture of wild yeast and lactic acid bacteria.\n\n"
        "The bacteria produce lactic and acetic acids, which give the bread its tang, "
        "while the yeast produces carbon dioxide that leavens the dough.\n\n"
        "A healthy starter doubles in size four to eight hours after feeding at room temperature."
    ),
    "metadata": {
        "contentType": "generic",
        "description": "An explainer on the microbiology behind sourdough bread",
        "authors": ["Jane Baker"],
        "tags": ["baking", "fermentation"],
    },
    "images": [],
    "extractorType": "generic",
}


async def main():
    """Demonstrate a capture followed by a chat refinement"""

    print("🧚 PagePixie Example")
    print("=" * 40)

    config = PagePixieConfig(provider="openai", pool_size=2)

    async with PagePixie(config=config, api_key=os.getenv("OPENAI_API_KEY")) as pixie:
        print(f"✓ Created PagePixie instance")
        print(f"  Provider: {pixie.config.provider} ({pixie.config.model})")
        print(f"  Storage: {type(pixie.storage).__name__}")
        print()

        if not await pixie.wait_until_ready():
            print("⚠️  Model service unavailable. Set OPENAI_API_KEY to run the full example.")
            return

        callbacks = CaptureCallbacks(
            on_stage=lambda stage: print(f"  → {stage.value}") if stage != CaptureStage.START else None,
            on_condense_progress=lambda current, total: print(f"    condensing {current}/{total}"),
            on_summarize_progress=lambda current, total: print(f"    summarizing {current}/{total}"),
        )

        print("🔄 Capturing page...")
        result = await pixie.capture(SAMPLE_PAGE, callbacks)

        print(f"\n📄 {result.processed_page_content.title}")
        print(f"   Content type: {result.processed_page_content.metadata.content_type}")
        print(f"   Summary: {result.summary}")
        for key, value in result.structured_data.items():
            print(f"   {key}: {value}")

        if result.degraded:
            print("\n⚠️  Some stages fell back:")
            for diagnostic in result.diagnostics:
                print(f"   - {diagnostic}")

        print("\n💬 Refining through chat...")
        response = await pixie.chat(SAMPLE_PAGE["url"], "Shorten the summary to two sentences")
        print(f"   Assistant: {response.ai_response}")
        print(f"   New summary: {response.summary}")

        records = await pixie.list_records()
        print(f"\n📚 Stored records: {len(records)}")


if __name__ == "__main__":
    asyncio.run(main())
