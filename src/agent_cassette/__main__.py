from agent_cassette.cli import app

app(prog_name="agent-cassette")
