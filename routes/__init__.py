def register_routes(app):
    from stock.stock_routes import bp as stock_bp
    app.register_blueprint(stock_bp, url_prefix="/stock")

    from expiry.expiry_routes import bp as expired_bp
    app.register_blueprint(expired_bp, url_prefix="/expired")

    from sales.sales_routes import bp as sales_bp
    app.register_blueprint(sales_bp, url_prefix="/sales")

    from borrowers.borrower_routes import bp as borrower_bp
    app.register_blueprint(borrower_bp, url_prefix="/borrowers")

    from reports.report_routes import bp as report_bp
    app.register_blueprint(report_bp, url_prefix="/reports")
