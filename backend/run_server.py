"""Run the API with uvicorn (Ctrl+C / SIGTERM handled by uvicorn)."""
import uvicorn

if __name__ == "__main__":
    print("=" * 50)
    print("  Starting Pharmacy Stock Ledger Backend")
    print("=" * 50)
    uvicorn.run(
        "stockledger.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
