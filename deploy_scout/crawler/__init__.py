"""deploy_scout.crawler: safe, polite, keyword-guided documentation crawling."""
