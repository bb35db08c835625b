#!/usr/bin/env python3
"""
Cron Job - Varredura Judicial Diária
====================================

Executa uma varredura completa dos casos abertos com radicado.

Configuração do cron (meia-noite em Bogotá):
CRON_TZ=America/Bogota
0 0 * * * cd /path/to/backend && python3 cron_judicial_sweep.py >> logs/cron.log 2>&1
"""

import sys
from datetime import datetime

from db import Base, SessionLocal, engine
from tasks import run_judicial_sweep
from logger import logger

def main():
    """Função principal do cron job."""
    logger.info("=" * 80)
    logger.info(f"CRON JOB INICIADO - {datetime.now()}")
    logger.info("=" * 80)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        result = run_judicial_sweep(db, execution_type="cron")

        if result["success"]:
            logger.info(f"✅ SUCESSO: {result['cases_processed']} de {result['cases_found']} casos sincronizados")
            return 0

        logger.error(f"❌ ERRO: {result.get('error', 'Erro desconhecido')}")
        return 1

    except Exception as e:
        logger.exception(f"❌ ERRO CRÍTICO: {e}")
        return 1

    finally:
        db.close()
        logger.info("=" * 80)
        logger.info(f"CRON JOB FINALIZADO - {datetime.now()}")
        logger.info("=" * 80)


if __name__ == "__main__":
    sys.exit(main())
