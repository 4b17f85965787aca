from scrapingbee_mcp.main import cli

cli()
