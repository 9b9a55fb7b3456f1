# database/northwind_metadata.py

# Semantic metadata for the Northwind trading database, in the same shape an
# external metadata file uses (see database/metadata_loader.py).

NORTHWIND_TABLES = [
    {
        "tableName": "customers",
        "businessName": "Customers",
        "description": "Customer information and contact details for companies that purchase products",
        "primaryKey": "customer_id",
        "timestamps": False,
        "columns": [
            {"name": "customer_id", "dataType": "bpchar", "description": "Five-letter customer code"},
            {"name": "company_name", "businessName": "Company", "dataType": "varchar"},
            {"name": "contact_name", "businessName": "Contact", "dataType": "varchar"},
            {"name": "city", "dataType": "varchar"},
            {"name": "country", "dataType": "varchar"},
        ],
    },
    {
        "tableName": "orders",
        "businessName": "Orders",
        "description": "Customer orders with dates, shipping information, and freight costs",
        "primaryKey": "order_id",
        "columns": [
            {"name": "order_id", "dataType": "smallint"},
            {"name": "customer_id", "dataType": "bpchar"},
            {"name": "employee_id", "dataType": "smallint"},
            {"name": "order_date", "businessName": "Order Date", "dataType": "date"},
            {"name": "shipped_date", "businessName": "Shipped Date", "dataType": "date"},
            {"name": "ship_via", "dataType": "smallint", "description": "Shipper that delivered the order"},
            {
                "name": "freight",
                "businessName": "Freight Cost",
                "dataType": "real",
                "isMetric": True,
                "aggregations": ["SUM", "AVG"],
                "businessRules": ["Freight is charged once per order, not per line item"],
            },
        ],
    },
    {
        "tableName": "order_details",
        "businessName": "Order Line Items",
        "description": "Individual line items for each order showing products, quantities, prices, and discounts",
        "primaryKey": ["order_id", "product_id"],
        "timestamps": False,
        "columns": [
            {"name": "order_id", "dataType": "smallint"},
            {"name": "product_id", "dataType": "smallint"},
            {
                "name": "unit_price",
                "businessName": "Unit Price",
                "dataType": "real",
                "isMetric": True,
                "aggregations": ["AVG", "MIN", "MAX"],
            },
            {"name": "quantity", "dataType": "smallint", "isMetric": True, "aggregations": ["SUM", "AVG"]},
            {
                "name": "discount",
                "dataType": "real",
                "businessRules": ["Revenue = quantity * unit_price * (1 - discount)"],
            },
        ],
    },
    {
        "tableName": "products",
        "businessName": "Products",
        "description": "Product catalog with pricing, inventory levels, and supplier information",
        "primaryKey": "product_id",
        "timestamps": False,
        "columns": [
            {"name": "product_id", "dataType": "smallint"},
            {"name": "product_name", "businessName": "Product", "dataType": "varchar"},
            {"name": "supplier_id", "dataType": "smallint"},
            {"name": "category_id", "dataType": "smallint"},
            {"name": "units_in_stock", "businessName": "Stock", "dataType": "smallint", "isMetric": True},
            {"name": "discontinued", "dataType": "integer", "businessRules": ["1 means no longer sold"]},
        ],
    },
    {
        "tableName": "categories",
        "businessName": "Product Categories",
        "description": "Product categories for organizing the product catalog",
        "primaryKey": "category_id",
        "timestamps": False,
        "columns": [
            {"name": "category_id", "dataType": "smallint"},
            {"name": "category_name", "businessName": "Category", "dataType": "varchar"},
        ],
    },
    {
        "tableName": "suppliers",
        "businessName": "Suppliers",
        "description": "Supplier information and contact details for product sourcing",
        "primaryKey": "supplier_id",
        "timestamps": False,
        "columns": [
            {"name": "supplier_id", "dataType": "smallint"},
            {"name": "company_name", "businessName": "Supplier", "dataType": "varchar"},
            {"name": "country", "dataType": "varchar"},
        ],
    },
    {
        "tableName": "employees",
        "businessName": "Employees",
        "description": "Employee information including job titles and reporting structure",
        "primaryKey": "employee_id",
        "timestamps": False,
        "columns": [
            {"name": "employee_id", "dataType": "smallint"},
            {"name": "last_name", "dataType": "varchar"},
            {"name": "title", "dataType": "varchar"},
            {"name": "reports_to", "dataType": "smallint", "description": "Manager's employee_id"},
        ],
    },
    {
        "tableName": "shippers",
        "businessName": "Shippers",
        "description": "Shipping companies used for order delivery",
        "primaryKey": "shipper_id",
        "timestamps": False,
        "columns": [
            {"name": "shipper_id", "dataType": "smallint"},
            {"name": "company_name", "businessName": "Shipper", "dataType": "varchar"},
        ],
    },
]

NORTHWIND_RELATIONSHIPS = [
    {
        "name": "customer_orders",
        "sourceTable": "customers",
        "targetTable": "orders",
        "type": "ONE_TO_MANY",
        "sourceKey": "customer_id",
        "targetKey": "customer_id",
        "businessDescription": "Customers place orders",
    },
    {
        "name": "order_line_items",
        "sourceTable": "orders",
        "targetTable": "order_details",
        "type": "ONE_TO_MANY",
        "sourceKey": "order_id",
        "targetKey": "order_id",
        "businessDescription": "Orders contain multiple line items",
    },
    {
        "name": "product_line_items",
        "sourceTable": "products",
        "targetTable": "order_details",
        "type": "ONE_TO_MANY",
        "sourceKey": "product_id",
        "targetKey": "product_id",
        "businessDescription": "Products appear in order line items",
    },
    {
        "name": "category_products",
        "sourceTable": "categories",
        "targetTable": "products",
        "type": "ONE_TO_MANY",
        "sourceKey": "category_id",
        "targetKey": "category_id",
        "businessDescription": "Categories contain products",
    },
    {
        "name": "supplier_products",
        "sourceTable": "suppliers",
        "targetTable": "products",
        "type": "ONE_TO_MANY",
        "sourceKey": "supplier_id",
        "targetKey": "supplier_id",
        "businessDescription": "Suppliers provide products",
    },
    {
        "name": "employee_orders",
        "sourceTable": "employees",
        "targetTable": "orders",
        "type": "ONE_TO_MANY",
        "sourceKey": "employee_id",
        "targetKey": "employee_id",
        "businessDescription": "Each order is processed by one employee",
    },
    {
        "name": "shipper_orders",
        "sourceTable": "shippers",
        "targetTable": "orders",
        "type": "ONE_TO_MANY",
        "sourceKey": "shipper_id",
        "targetKey": "ship_via",
        "businessDescription": "Each order is shipped via one shipper",
    },
    {
        "name": "employee_hierarchy",
        "sourceTable": "employees",
        "targetTable": "employees",
        "type": "ONE_TO_MANY",
        "sourceKey": "employee_id",
        "targetKey": "reports_to",
        "businessDescription": "Self-referencing relationship for employee hierarchy",
    },
]

NORTHWIND_CONCEPTS = [
    {
        "name": "revenue",
        "description": "Money earned from order line items after discounts",
        "tables": [
            {"name": "orders", "role": "order header"},
            {"name": "order_details", "role": "line items"},
        ],
        "metrics": [
            {
                "name": "total revenue",
                "description": "Discounted line item value",
                "calculation": "SUM(order_details.unit_price * order_details.quantity * (1 - order_details.discount))",
                "table": "order_details",
                "aggregation": "SUM",
            },
        ],
        "commonQueries": ["total sales", "how much did we sell"],
    },
    {
        "name": "customer",
        "description": "Companies that buy from us and the orders they place",
        "tables": [
            {"name": "customers", "role": "buyer"},
            {"name": "orders", "role": "purchases"},
        ],
        "metrics": [
            {
                "name": "order count",
                "calculation": "COUNT(DISTINCT orders.order_id)",
                "table": "orders",
                "column": "order_id",
                "aggregation": "COUNT",
            },
        ],
        "commonQueries": ["who buys", "best clients"],
    },
    {
        "name": "shipped orders",
        "description": "Orders that have left the warehouse",
        "tables": [
            {"name": "orders", "role": "shipment", "conditions": ["orders.shipped_date IS NOT NULL"]},
        ],
        "metrics": [],
        "commonQueries": ["delivered orders"],
    },
    {
        "name": "product catalog",
        "description": "Products currently on sale, by category",
        "tables": [
            {"name": "products", "role": "item", "conditions": ["products.discontinued = 0"]},
            {"name": "categories", "role": "grouping"},
        ],
        "metrics": [],
        "commonQueries": ["products by category", "active products"],
    },
]

NORTHWIND_METRICS = [
    {
        "name": "total revenue",
        "description": "Sum of discounted line item value",
        "type": "SIMPLE",
        "calculation": "SUM(order_details.unit_price * order_details.quantity * (1 - order_details.discount))",
        "dependencies": [
            {"table": "order_details", "column": "unit_price"},
            {"table": "order_details", "column": "quantity"},
            {"table": "order_details", "column": "discount"},
        ],
        "validations": ["Must be non-negative"],
    },
    {
        "name": "order count",
        "description": "Number of distinct orders",
        "type": "SIMPLE",
        "calculation": "COUNT(DISTINCT orders.order_id)",
        "dependencies": [{"table": "orders", "column": "order_id"}],
    },
    {
        "name": "average order value",
        "description": "Revenue per order",
        "type": "CALCULATED",
        "calculation": (
            "SUM(order_details.unit_price * order_details.quantity * (1 - order_details.discount))"
            " / NULLIF(COUNT(DISTINCT orders.order_id), 0)"
        ),
        "dependencies": [
            {"table": "orders", "column": "order_id"},
            {"table": "order_details", "column": "unit_price"},
        ],
    },
    {
        "name": "freight cost",
        "description": "Total freight charged on orders",
        "type": "SIMPLE",
        "calculation": "SUM(orders.freight)",
        "dependencies": [{"table": "orders", "column": "freight"}],
    },
    {
        "name": "customer lifetime value",
        "description": "Revenue per customer over the whole history",
        "type": "DERIVED",
        "calculation": "total revenue / customer count",
        "dependencies": [
            {"table": "customers", "column": "customer_id"},
            {"table": "order_details", "column": "unit_price"},
        ],
    },
]

NORTHWIND_METADATA = {
    "tables": NORTHWIND_TABLES,
    "relationships": NORTHWIND_RELATIONSHIPS,
    "concepts": NORTHWIND_CONCEPTS,
    "metrics": NORTHWIND_METRICS,
}
