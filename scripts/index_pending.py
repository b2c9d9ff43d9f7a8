import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from local_rag.core.errors import RagError
from local_rag.db import Database
from local_rag.embeddings.embedder import Embedder
from local_rag.embeddings.state import EmbeddingHandle
from local_rag.services.rag_service import RagService


async def main() -> int:
    print("Opening database...")
    db = Database()
    await db.create_all()

    service = RagService(db, EmbeddingHandle(), encoder_factory=Embedder)

    try:
        print("Loading embedding model...")
        await service.init_embedding_model()

        stats = await service.chunk_stats()
        print(f"Store holds {stats.total_chunks} chunks across {stats.total_documents} documents.")

        print("Indexing pending documents (this may take time)...")
        summary = await service.index_all_pending()
        print(
            f"Done! Indexed {summary.documents_indexed} documents, "
            f"{summary.chunks_embedded} chunks."
        )
        return 0
    except RagError as e:
        print(f"Indexing failed: {e}")
        return 1
    finally:
        service.embeddings.unload()
        await db.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
