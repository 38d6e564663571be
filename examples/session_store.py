import asyncio
from slackwire import Agent, Message, ThreadStore, ToolRegistry
from slackwire.database import ENQUEUE
from slackwire.models.session_key import scheduled_coordinates, slack_coordinates
from slackwire.utils.turn_runner import TurnRunner

async def main():
    """
    Demonstrates how events map to sessions and how appends start turns.
    """
    # 1. Create a store. Pass a URL such as "sqlite+aiosqlite:///threads.db"
    #    to keep sessions across restarts.
    store = await ThreadStore.create()

    # 2. Attach a turn runner so appends start agent turns.
    agent = Agent(
        model_name="gpt-4.1",
        purpose="Answer questions concisely.",
        tools=ToolRegistry(),
    )
    runner = TurnRunner(store, agent).attach()
    await runner.start()

    # 3. Two mentions in the same Slack thread share one session.
    coordinates = slack_coordinates("C123", "1700000000.0001")
    thread = await store.upsert(coordinates)
    again = await store.upsert(coordinates)
    print(f"Thread {thread.key} resolved twice to the same id: {thread.id == again.id}")

    await store.append(thread.id, [Message.text("user", "What is the capital of Spain?")])

    # 4. Scheduled runs get a fresh session each time and are queued.
    news = await store.upsert(scheduled_coordinates("daily-news"))
    print(f"Scheduled session key: {news.key}")
    await store.append(news.id, [Message.text("user", "Say good morning.")], mode=ENQUEUE)

    await runner.drain()
    await runner.stop()

    for thread_id in (thread.id, news.id):
        stored = await store.get(thread_id)
        print(f"\n{stored.key}")
        for message in stored.messages:
            print(f"  {message.sequence}. {message.role}: {message.content}")

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        print(f"An error occurred: {e}")
