import asyncio
import sys

from lloom import Lloom


# Simple usage - config loaded from .env automatically (mock provider without an API key)
async def main(prompt: str) -> None:
    async with Lloom() as app:
        models = await app.load_available_models()
        for model in models[1:3]:
            space = app.add_space()
            if space is not None:
                app.change_model(space.id, model.id)

        outcomes = await app.send_message(prompt)
        for outcome in outcomes:
            print(outcome.kind, outcome.space_id)

        print(app.export_all() or "(nothing to export)")


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "Explain monads in one sentence"))
